"""Hosted catalog API client.

Reads the active program catalog and saved wizard sessions from the hosted
PostgREST database.
"""

import logging
import os
from typing import Optional

import requests
from dotenv import load_dotenv

from .models import FundingProgram
from .parser import ProgramParser

load_dotenv()

logger = logging.getLogger(__name__)


class CatalogAPI:
    """Client for the hosted grants database REST API."""

    REST_PATH = "/rest/v1"

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: int = 15):
        self.base_url = (base_url or os.getenv("SUPABASE_URL") or "").rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_ANON_KEY")

        if not self.base_url:
            raise ValueError("SUPABASE_URL not found in environment")
        if not self.api_key:
            raise ValueError("SUPABASE_ANON_KEY not found in environment")

        self.timeout = timeout
        self.parser = ProgramParser()
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "grantmatch/1.0",
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        })

    def _get(self, table: str, params: dict) -> Optional[list]:
        """GET rows from a table, returning None on any failure."""
        url = f"{self.base_url}{self.REST_PATH}/{table}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            if resp.status_code == 200:
                return resp.json()
            logger.warning(f"Catalog API returned status {resp.status_code} for {table}")
            return None
        except requests.RequestException as e:
            logger.error(f"Error fetching {table}: {e}")
            return None
        except ValueError as e:
            logger.error(f"Invalid JSON from {table}: {e}")
            return None

    def get_active_programs(self) -> list[FundingProgram]:
        """Fetch all active programs, ordered by name.

        Returns:
            List of FundingProgram, empty if the catalog could not be fetched
        """
        rows = self._get("grants", {
            "select": "*",
            "is_active": "eq.true",
            "order": "name",
        })
        if rows is None:
            return []
        programs = self.parser.parse_catalog(rows)
        logger.info(f"Fetched {len(programs)} active programs")
        return programs

    def get_latest_wizard_data(self, user_id: str) -> Optional[dict]:
        """Get the wizard answers from a user's most recent completed session.

        Args:
            user_id: Account identifier

        Returns:
            Wizard answers dict or None if there is no completed session
        """
        rows = self._get("sessions", {
            "select": "wizard_data",
            "user_id": f"eq.{user_id}",
            "status": "eq.completed",
            "order": "created_at.desc",
            "limit": 1,
        })
        if not rows:
            logger.debug(f"No completed session for user {user_id}")
            return None
        wizard_data = rows[0].get("wizard_data")
        return wizard_data if isinstance(wizard_data, dict) else None
