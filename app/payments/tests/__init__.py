"""
Tests for payments app.

This package contains test modules for:
- test_models.py: PaymentTransaction and WebhookEvent model tests
- test_state_transitions.py: Transaction state machine tests
- test_serializers.py: Request serializer validation
- test_views.py: API endpoint tests
- test_integration.py: End-to-end payment flows

Usage:
    pytest payments/tests/
    pytest payments/tests/test_views.py
"""
