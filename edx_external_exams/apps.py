"""
edx_external_exams Django application initialization.
"""

import logging

from stevedore.extension import ExtensionManager

from django.apps import AppConfig
from django.conf import settings

log = logging.getLogger(__name__)

GATEWAY_NAMESPACE = 'openedx.external_exams'

GATEWAY_CONFIGURATION_ALLOW_LIST = [
    'base_url',
    'instance',
    'name',
    'organisation_key',
    'owner_key',
    'timeout',
    'verbose_name',
]


class ExternalExamsConfig(AppConfig):
    """
    Configuration for the edx_external_exams Django application.
    """

    name = 'edx_external_exams'
    verbose_name = 'External Exams'
    default_auto_field = 'django.db.models.AutoField'
    plugin_app = {
        'url_config': {
            'lms.djangoapp': {
                'namespace': 'edx_external_exams',
                'regex': '^api/',
                'relative_path': 'urls',
            },
        },
        'settings_config': {
            'lms.djangoapp': {
                'common': {'relative_path': 'settings.common'},
            },
        },
    }

    def get_gateway_choices(self):
        """
        Returns an iterator of configured credential sets:
        credentials_id, name
        """
        for credentials_id, gateway in self.gateways.items():
            yield credentials_id, gateway.name

    def get_gateway(self, credentials_id):
        """
        Returns the gateway of a credential set, None if the credentials
        are unknown or name a backend that is not installed.

        :param str credentials_id: key into settings.EXTERNAL_EXAMS_CREDENTIALS
        """
        return self.gateways.get(credentials_id)

    def ready(self):
        """
        Builds one remote gateway per configured credential set
        """
        # pylint: disable=unused-import
        # pylint: disable=import-outside-toplevel
        from edx_external_exams import rules, signals
        credentials = getattr(settings, 'EXTERNAL_EXAMS_CREDENTIALS', {})

        plugins = {extension.name: extension.plugin for extension in ExtensionManager(namespace=GATEWAY_NAMESPACE)}
        self.gateways = {}  # pylint: disable=W0201
        for credentials_id, config in credentials.items():
            backend = config.get('backend', 'bizexaminer')
            try:
                plugin = plugins[backend]
            except KeyError:
                log.warning(
                    'Credentials credentials_id=%(credentials_id)s use unknown backend=%(backend)s',
                    {'credentials_id': credentials_id, 'backend': backend}
                )
                continue
            options = {
                key: val for (key, val) in config.items()
                if key in GATEWAY_CONFIGURATION_ALLOW_LIST
            }
            self.gateways[credentials_id] = plugin(credentials_id=credentials_id, **options)
