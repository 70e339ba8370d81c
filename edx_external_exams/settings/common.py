"""
Common Pluggable Django App settings
"""


def plugin_settings(settings):
    """
    Injects local settings into django settings
    """
    settings.EXTERNAL_EXAMS_SETTINGS = getattr(settings, 'EXTERNAL_EXAMS_SETTINGS', {})
    settings.EXTERNAL_EXAMS_CREDENTIALS = getattr(settings, 'EXTERNAL_EXAMS_CREDENTIALS', {})
