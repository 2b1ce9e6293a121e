"""
Expense category enumeration.
"""

import enum


class ExpenseCategory(str, enum.Enum):
    FUEL = "Fuel"
    MAINTENANCE = "Maintenance"
    INSURANCE = "Insurance"
    TOLL = "Toll"
    OTHER = "Other"
