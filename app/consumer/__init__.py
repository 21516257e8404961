"""
Loan event consumer process
"""
