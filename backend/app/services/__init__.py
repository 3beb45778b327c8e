"""
Services Layer

Onboarding and SMS logic shared by the routes:
- Take a Session plus plain inputs (phone strings, agent ids, phase values)
- Return models or small result dataclasses
- Never build HTTP responses; routes map service errors to status codes
"""
