"""
Settlement Module

This module turns net balances into settlement transfers for the expense
splitter.

Features:
    - Convert net balances into settlement transactions
    - Reduce the number of transactions with a greedy match
    - Absorb floating-point noise with a small tolerance band

Data Model:
    Input - balances (dict keyed by participant_id):
        - float net balance (positive = is owed money, negative = owes money)

    Output - list of settlement transactions:
        - from_participant: string (debtor who pays)
        - to_participant: string (creditor who receives)
        - amount: float (strictly positive, not rounded)

Functions:
    optimize_settlements: Convert balances into settlement transactions.
"""


# Balances within +/- this amount count as settled
SETTLEMENT_TOLERANCE = 0.005


def optimize_settlements(balances: dict) -> list[dict]:
    """
    Convert net balances into settlement transactions.

    Uses a greedy algorithm:
        1. Separate participants into debtors (balance < -0.005) and
           creditors (balance > 0.005)
        2. Sort debtors by largest debt first
        3. Sort creditors by largest credit first
        4. Match the current debtor with the current creditor:
           - Transfer the smaller of their remaining amounts
           - Move past whichever side is now settled (possibly both)
           - Stop when either side runs out

    Args:
        balances: Dictionary mapping participant_id to net balance.

    Returns:
        list[dict]: Settlement transactions in the order they were matched.

    Notes:
        - The result is what the greedy match produces; it is not a proven
          minimum number of transfers
        - Does NOT modify input balances
    """
    # Remaining amounts are stored as positive numbers on both sides
    debtors = []
    creditors = []

    for participant_id, balance in balances.items():
        if balance < -SETTLEMENT_TOLERANCE:
            debtors.append([participant_id, -balance])
        elif balance > SETTLEMENT_TOLERANCE:
            creditors.append([participant_id, balance])

    debtors.sort(key=lambda x: x[1], reverse=True)
    creditors.sort(key=lambda x: x[1], reverse=True)

    settlements = []
    debtor_idx = 0
    creditor_idx = 0

    while debtor_idx < len(debtors) and creditor_idx < len(creditors):
        debtor = debtors[debtor_idx]
        creditor = creditors[creditor_idx]

        pay = min(debtor[1], creditor[1])
        settlements.append({
            "from_participant": debtor[0],
            "to_participant": creditor[0],
            "amount": pay
        })

        debtor[1] -= pay
        creditor[1] -= pay

        if debtor[1] <= SETTLEMENT_TOLERANCE:
            debtor_idx += 1
        if creditor[1] <= SETTLEMENT_TOLERANCE:
            creditor_idx += 1

    return settlements
