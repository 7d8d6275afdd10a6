"""
Services layer - business logic for reports, triage and administration.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services receive the backend client in their constructor
- Role decisions go through services.capabilities, never raw role strings
"""
