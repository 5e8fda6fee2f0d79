"""
Celery task modules
"""
