"""
Exam attempts booked on, taken on and graded by an external exam service.
"""

__version__ = '1.0.0'
