"""
SQL definitions for the planner database
"""
