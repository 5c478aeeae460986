"""
Database helper functions for reading and writing Supabase tables.

Provides clean interfaces for the credit ledger and design submissions
used throughout the design studio flow.
"""

from typing import Dict, Optional, Any
from datetime import datetime
from design_studio.core.supabase_client import get_supabase
from design_studio.core.logger import logger


class DatabaseManager:
    """Handles all database operations for the studio."""

    # ==================== CREDITS ====================

    @staticmethod
    def get_credit_record(user_id: str) -> Optional[Dict]:
        """Retrieve a user's credit balance and free-credit reset date."""
        supabase = get_supabase()
        response = supabase.table("user_credits")\
            .select("balance,free_credits_reset_at")\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return response.data[0] if response.data else None

    @staticmethod
    def create_credit_record(user_id: str, balance: int, reset_at: datetime) -> Dict:
        """
        Create the credit record for a first-time user.

        Args:
            user_id: Owner of the balance
            balance: Opening balance (the free monthly allowance)
            reset_at: When the next free allowance is granted

        Returns:
            The inserted row
        """
        supabase = get_supabase()

        data = {
            "user_id": user_id,
            "balance": balance,
            "free_credits_reset_at": reset_at.isoformat(),
        }

        response = supabase.table("user_credits").insert(data).execute()
        logger.info(f"Created credit record for user {user_id} with balance {balance}")
        return response.data[0] if response.data else data

    @staticmethod
    def update_credit_balance(
        user_id: str,
        balance: int,
        reset_at: Optional[datetime] = None
    ):
        """Overwrite a user's balance (and optionally the reset date)."""
        supabase = get_supabase()

        data: Dict[str, Any] = {"balance": balance}
        if reset_at:
            data["free_credits_reset_at"] = reset_at.isoformat()

        supabase.table("user_credits").update(data).eq("user_id", user_id).execute()
        logger.info(f"User {user_id} credit balance set to {balance}")

    @staticmethod
    def log_credit_transaction(user_id: str, amount: int, type: str, description: str):
        """Append an entry to the credit transaction history."""
        supabase = get_supabase()

        data = {
            "user_id": user_id,
            "amount": amount,
            "type": type,
            "description": description,
        }

        supabase.table("credit_transactions").insert(data).execute()

    @staticmethod
    def log_usage(user_id: str, action_type: str):
        """Record a usage analytics event."""
        supabase = get_supabase()
        supabase.table("usage_analytics").insert({
            "user_id": user_id,
            "action_type": action_type,
        }).execute()

    # ==================== SUBMISSIONS ====================

    @staticmethod
    def save_submission(data: Dict[str, Any]) -> str:
        """
        Persist a design submission for admin review.

        Args:
            data: Column values for the designer_products table

        Returns:
            Submission UUID
        """
        supabase = get_supabase()

        row = dict(data)
        row.setdefault("status", "pending")

        response = supabase.table("designer_products").insert(row).execute()
        submission_id = response.data[0]["id"]

        logger.info(f"Saved submission {submission_id} for designer {row.get('designer_id')}")
        return submission_id

    @staticmethod
    def get_submission(submission_id: str) -> Optional[Dict]:
        """Retrieve a submitted design."""
        supabase = get_supabase()
        response = supabase.table("designer_products").select("*").eq("id", submission_id).execute()
        return response.data[0] if response.data else None
