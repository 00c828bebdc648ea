"""
OpenAPI schema customizations for drf-spectacular.

This module provides hooks to customize the generated OpenAPI schema,
including tag groupings for better documentation organization in ReDoc.

Tag naming follows the pattern: [App Name] - [Group Name]
Examples:
- Auth (JWT token endpoints)
- Payments - PhonePe (initiation, status, order history)
"""

# Natural language summaries for simplejwt endpoints
# Maps operation_id to (summary, description)
JWT_SUMMARIES = {
    "auth_token_create": (
        "Obtain tokens",
        "Authenticate with username and password to receive JWT tokens.",
    ),
    "auth_token_refresh_create": (
        "Refresh access token",
        "Get a new access token using a valid refresh token.",
    ),
}


def add_tag_descriptions(result, generator, request, public):
    """
    Postprocessing hook to group API endpoints by function.

    Auth endpoints are grouped under "Auth" and get natural language
    summaries. Payment views set their tags via @extend_schema.
    """
    paths = result.get("paths", {})

    for path, methods in paths.items():
        for method, operation in methods.items():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")

            if operation_id in JWT_SUMMARIES:
                summary, description = JWT_SUMMARIES[operation_id]
                operation["summary"] = summary
                operation["description"] = description

            if operation_id.startswith("auth_"):
                operation["tags"] = ["Auth"]

    result["tags"] = [
        {
            "name": "Auth",
            "description": "JWT access and refresh token management.",
        },
        {
            "name": "Payments - PhonePe",
            "description": (
                "PhonePe hosted-page payments: initiation, status refresh, "
                "and per-order transaction history."
            ),
        },
    ]

    return result
