"""
E-SERBISYO push notification engine
"""
