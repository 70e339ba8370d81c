"""
Runtime services the host LMS registers so the engine can call back into it

Known service names:

* ``lms``: prerequisites, retake limits and accessibility of an exam
  (see tests.test_services.MockLmsService for the expected methods)
* ``scheduler``: replaces the database backed results check scheduler
"""

_RUNTIME_SERVICES = {}


def set_runtime_service(name, service):
    """
    Adds a service provided by the runtime (aka LMS) to our directory
    """
    _RUNTIME_SERVICES[name] = service


def get_runtime_service(name):
    """
    Returns a registered runtime service, None if no match is found
    """
    return _RUNTIME_SERVICES.get(name)


def remove_runtime_service(name):
    """
    Drops a registered runtime service, if there is one
    """
    _RUNTIME_SERVICES.pop(name, None)
