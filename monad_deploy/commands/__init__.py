"""
Transaction commands that run against already deployed contracts.
"""
