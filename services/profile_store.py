# services/profile_store.py

from typing import Optional

from fastapi import HTTPException
from supabase import Client

from core.errors import extract_supabase_error, is_unique_violation, supabase_error
from core.logging_config import get_logger
from core.roles import RESIDENT
from core.utils import sanitize
from models.profile import PROFILE_EDITABLE_FIELDS


logger = get_logger("profiles")


def seed_from_identity(email: Optional[str], metadata: Optional[dict]) -> dict:
    """
    Profile columns taken from sign-up metadata.
    full_name falls back to the local part of the e-mail address.
    """
    metadata = metadata or {}
    full_name = (metadata.get("full_name") or metadata.get("name") or "").strip()
    if not full_name and email:
        full_name = email.split("@", 1)[0]

    return {
        "email": email,
        "full_name": full_name or None,
        "mobile": metadata.get("mobile") or metadata.get("phone"),
        "address": metadata.get("address"),
        "birth_date": metadata.get("birth_date"),
    }


class ProfileStore:
    def __init__(self, client: Client):
        self.client = client

    def get_profile(self, profile_id: str) -> Optional[dict]:
        try:
            res = (
                self.client.table("profiles")
                .select("*")
                .eq("id", profile_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to load profile")

        rows = res.data or []
        return rows[0] if rows else None

    def create_profile_if_absent(self, profile_id: str, seed: dict) -> dict:
        """
        Idempotent: the sign-up trigger may have created the row already,
        and a racing insert is answered by re-reading the winner's row.
        """
        existing = self.get_profile(profile_id)
        if existing:
            return existing

        row = sanitize(seed)
        row["id"] = profile_id
        row["role"] = RESIDENT

        try:
            res = self.client.table("profiles").insert(row).execute()
        except Exception as e:
            if is_unique_violation(e):
                logger.info(f"Profile {profile_id} created concurrently; re-reading")
                existing = self.get_profile(profile_id)
                if existing:
                    return existing
            supabase_error(e, "Failed to create profile")

        logger.info(f"Created profile {profile_id}")
        return res.data[0] if res.data else row

    def update_profile(self, profile_id: str, fields: dict) -> dict:
        """
        Write the profile row first; when the e-mail changes, push it to the
        identity provider and put the row back if that fails.
        """
        current = self.get_profile(profile_id)
        if not current:
            raise HTTPException(404, "Profile not found")

        changes = sanitize(fields, PROFILE_EDITABLE_FIELDS)
        if "full_name" in changes and not changes["full_name"]:
            raise HTTPException(400, "Full name cannot be empty")
        if "email" in changes and not changes["email"]:
            raise HTTPException(400, "Email cannot be empty")
        if not changes:
            return current

        new_email = changes.get("email")
        email_changed = bool(new_email) and new_email != current.get("email")

        try:
            res = (
                self.client.table("profiles")
                .update(changes)
                .eq("id", profile_id)
                .execute()
            )
        except Exception as e:
            supabase_error(e, "Failed to update profile")

        if email_changed:
            try:
                self.client.auth.admin.update_user_by_id(profile_id, {"email": new_email})
            except Exception as e:
                self._restore(profile_id, {k: current.get(k) for k in changes})
                detail = extract_supabase_error(e)
                logger.error(f"Identity e-mail update failed for {profile_id}: {detail}")
                raise HTTPException(400, f"Failed to update email: {detail}")

        logger.info(f"Updated profile {profile_id} fields={sorted(changes)}")
        return res.data[0] if res.data else {**current, **changes}

    def _restore(self, profile_id: str, prior: dict) -> None:
        try:
            self.client.table("profiles").update(prior).eq("id", profile_id).execute()
            logger.warning(f"Rolled back profile {profile_id} after identity update failure")
        except Exception as e:
            logger.error(
                f"Profile {profile_id} rollback failed, row and identity may differ: "
                f"{extract_supabase_error(e)}"
            )
