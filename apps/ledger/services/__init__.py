"""
Ledger app services layer.

Deposits, shopping expenses and meals: the raw facts every balance and
analytics figure is computed from.
"""

from .exceptions import (
    LedgerServiceError,
    EntryNotFoundError,
    EntryAlreadyReviewedError,
    InsufficientPermissionsError,
    NotRoomMemberError,
    MealDateFinalizedError,
)

from .deposits import (
    list_deposits,
    submit_deposit,
    approve_deposit,
    reject_deposit,
)

from .expenses import (
    list_expenses,
    submit_expense,
    approve_expense,
    reject_expense,
)

from .adjustments import (
    ADJUST_ADD,
    ADJUST_DEDUCT,
    ADJUSTMENT_TYPES,
    adjust_fund,
)

from .meals import (
    list_meals,
    upsert_meal,
    finalize_meal_date,
    is_date_finalized,
    get_meal_history,
    meal_summary,
)


__all__ = [
    # Exceptions
    'LedgerServiceError',
    'EntryNotFoundError',
    'EntryAlreadyReviewedError',
    'InsufficientPermissionsError',
    'NotRoomMemberError',
    'MealDateFinalizedError',

    # Deposits
    'list_deposits',
    'submit_deposit',
    'approve_deposit',
    'reject_deposit',

    # Expenses
    'list_expenses',
    'submit_expense',
    'approve_expense',
    'reject_expense',

    # Adjustments
    'ADJUST_ADD',
    'ADJUST_DEDUCT',
    'ADJUSTMENT_TYPES',
    'adjust_fund',

    # Meals
    'list_meals',
    'upsert_meal',
    'finalize_meal_date',
    'is_date_finalized',
    'get_meal_history',
    'meal_summary',
]
