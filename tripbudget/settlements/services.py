"""Settlement calculation service - Splitwise-style debt minimization."""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Dict, Any, Iterable

logger = logging.getLogger(__name__)

# Balances smaller than this (in currency units) count as settled
EPSILON = 0.01


def round_currency(amount: float) -> float:
    """Round to 2 decimal places, half up."""
    return float(Decimal(str(amount)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


class SettlementCalculator:
    """Calculate balances and minimize settlement transactions."""

    @staticmethod
    def get_balances(
        participants: Iterable[Dict[str, Any]],
        expenses: Iterable[Dict[str, Any]]
    ) -> Dict[str, Dict[str, Any]]:
        """
        Reduce expenses into a net balance per participant.

        Returns ordered dict of: {participant_id: {name, amount}}
        - Positive amount = is owed money (others owe them)
        - Negative amount = owes money (they owe others)
        """
        balances = {}
        for p in participants:
            balances[str(p["_id"])] = {"name": p["name"], "amount": 0.0}

        for expense in expenses:
            amount = float(expense["amount"])
            split_with = [str(pid) for pid in expense.get("split_with_ids") or []]

            if not split_with:
                continue

            split_amount = amount / len(split_with)

            # Payer gets credit for the full amount
            payer_id = str(expense.get("paid_by_id"))
            if payer_id in balances:
                balances[payer_id]["amount"] += amount

            # Everyone involved is debited their share
            for pid in split_with:
                if pid in balances:
                    balances[pid]["amount"] -= split_amount

        return balances

    @staticmethod
    def calculate_debts(balances: Dict[str, Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
        """
        Calculate who owes whom using greedy algorithm to minimize transactions.

        Returns: {"debts": [{from, to, amount}], "unsettled": [{name, amount}]}
        """
        debtors = []    # People who OWE money
        creditors = []  # People who are OWED money

        for pid, data in balances.items():
            if data["amount"] < -EPSILON:
                debtors.append({"id": pid, "name": data["name"], "amount": data["amount"]})
            elif data["amount"] > EPSILON:
                creditors.append({"id": pid, "name": data["name"], "amount": data["amount"]})

        # sorted() is stable, so ties keep participant order
        debtors = sorted(debtors, key=lambda x: x["amount"])
        creditors = sorted(creditors, key=lambda x: -x["amount"])

        debts = []
        i = 0  # debtor index
        j = 0  # creditor index

        while i < len(debtors) and j < len(creditors):
            debtor = debtors[i]
            creditor = creditors[j]

            amount = min(abs(debtor["amount"]), creditor["amount"])

            if amount > EPSILON:
                debts.append({
                    "from": debtor["name"],
                    "to": creditor["name"],
                    "amount": round_currency(amount)
                })

            debtor["amount"] += amount
            creditor["amount"] -= amount

            if abs(debtor["amount"]) < EPSILON:
                i += 1
            if creditor["amount"] < EPSILON:
                j += 1

        unsettled = [
            {"name": d["name"], "amount": round_currency(d["amount"])}
            for d in debtors[i:] + creditors[j:]
            if abs(d["amount"]) >= EPSILON
        ]
        if unsettled:
            logger.warning("Balances do not net to zero, left unsettled: %s", unsettled)

        return {"debts": debts, "unsettled": unsettled}

    @staticmethod
    def summarize(
        participants: List[Dict[str, Any]],
        expenses: List[Dict[str, Any]],
        total_budget: float
    ) -> Dict[str, Any]:
        """
        Full settlement view for one budget.

        Returns: {total_spent, remaining, balances, debts, unsettled}
        `remaining` goes negative when the trip is over budget.
        """
        balances = SettlementCalculator.get_balances(participants, expenses)
        resolved = SettlementCalculator.calculate_debts(balances)

        total_spent = round_currency(sum(float(e["amount"]) for e in expenses))

        return {
            "total_spent": total_spent,
            "remaining": round_currency(float(total_budget) - total_spent),
            "balances": [
                {
                    "participant_id": pid,
                    "name": data["name"],
                    "balance": round_currency(data["amount"])
                }
                for pid, data in balances.items()
            ],
            "debts": resolved["debts"],
            "unsettled": resolved["unsettled"]
        }
