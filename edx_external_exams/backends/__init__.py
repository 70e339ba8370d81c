"""
All supported remote exam gateways
"""

from django.apps import apps


def get_remote_gateway(credentials_id):
    """
    Returns the gateway configured for the credential set, None if the
    credentials id does not resolve to one
    """
    if not credentials_id:
        return None
    return apps.get_app_config('edx_external_exams').get_gateway(credentials_id)
