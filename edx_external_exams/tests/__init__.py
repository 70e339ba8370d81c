"""
Monkeypatches the default gateways
"""

import contextlib

import rules


def setup_test_backends():
    """
    Sets up the gateways required for testing, whether or not the
    entrypoints are installed.
    """
    # pylint: disable=import-outside-toplevel
    from django.apps import apps
    config = apps.get_app_config('edx_external_exams')
    from edx_external_exams.backends.bizexaminer import BizExaminerGateway
    from edx_external_exams.backends.null import NullGateway
    from edx_external_exams.backends.tests.test_backend import TestGateway
    config.gateways['test'] = TestGateway(credentials_id='test', name='Test organisation')
    config.gateways['null'] = NullGateway(credentials_id='null')
    config.gateways['live'] = BizExaminerGateway(
        credentials_id='live',
        instance='instance.example.com',
        owner_key='owner-key',
        organisation_key='organisation-key',
    )
    return config.gateways['test']


@contextlib.contextmanager
def mock_perm(perm='edx_external_exams.can_import_attempts'):
    """
    Context manager for mocking a specific permission to return False inside the block
    """
    original = rules.permissions.permissions[perm]
    try:
        rules.set_perm(perm, rules.always_false)
        yield
    finally:
        rules.set_perm(perm, original)


setup_test_backends()
