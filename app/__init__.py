"""
Application package for the Loan Service
"""
