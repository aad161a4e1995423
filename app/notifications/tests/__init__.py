"""
Tests for the notifications app.

Test modules:
    test_rendering: Placeholder rendering
    test_push: Push channel token filtering, chunking and status policy
    test_email: Email channel against Django's locmem backend
    test_delivery: Delivery orchestration and broadcast payloads
    test_services: Device token, template and notification services
    test_views: HTTP envelope, status codes and validation messages
    test_models: Model defaults and constraints
"""
