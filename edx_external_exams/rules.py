"""Django Rules for edx_external_exams"""

import rules


@rules.predicate
def allows_import(user, exam):  # pylint: disable=unused-argument
    """
    Returns whether the exam lets learners import their remote attempts
    """
    return bool(exam and exam.is_active and exam.import_external_attempts)


rules.add_perm('edx_external_exams.can_import_attempts', rules.is_authenticated & allows_import)
