"""
Microsoft Graph API client for fetching busy intervals.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Iterable, List

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import BusyDataError
from ..domain.models import BusyInterval

logger = logging.getLogger(__name__)


class GraphClient:
    """
    Client for Microsoft Graph API calendar operations.

    Uses the /calendar/getSchedule endpoint to fetch free/busy information.
    Obtaining the access token is up to the caller.
    """

    GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

    # We consider these statuses as "busy"
    BUSY_STATUSES = ("busy", "tentative", "oof", "workingelsewhere")

    def __init__(self, access_token: str, timezone: str = "Europe/Berlin", endpoint: str | None = None):
        """
        Initialize the Graph API client.

        Args:
            access_token: Valid Microsoft Graph access token
            timezone: IANA timezone identifier for requests and results
            endpoint: Optional API base URL
        """
        self.access_token = access_token
        self.timezone = timezone
        self.endpoint = (endpoint or self.GRAPH_API_ENDPOINT).rstrip("/")
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Prefer": f"outlook.timezone=\"{timezone}\""
        }

    async def get_busy_intervals(self, participant_id: str, days: Iterable[date]) -> List[BusyInterval]:
        """Busy intervals of one participant covering the given days."""
        requested = sorted(set(days))
        if not requested:
            return []

        start_time = pendulum.datetime(requested[0].year, requested[0].month, requested[0].day, tz=self.timezone)
        last = requested[-1]
        end_time = pendulum.datetime(last.year, last.month, last.day, tz=self.timezone).add(days=1)

        schedules = await asyncio.to_thread(self.get_schedule, [participant_id], start_time, end_time)
        return schedules.get(participant_id.lower(), [])

    def get_schedule(
        self,
        emails: List[str],
        start_time: DateTime,
        end_time: DateTime
    ) -> Dict[str, List[BusyInterval]]:
        """
        Get busy intervals for multiple users.

        Args:
            emails: List of user email addresses
            start_time: Start of the time window
            end_time: End of the time window

        Returns:
            Dictionary mapping lower-cased email -> list of BusyInterval objects

        Raises:
            BusyDataError: If the API call fails
        """
        url = f"{self.endpoint}/me/calendar/getSchedule"

        payload = {
            "schedules": emails,
            "startTime": {
                "dateTime": start_time.to_iso8601_string(),
                "timeZone": self.timezone
            },
            "endTime": {
                "dateTime": end_time.to_iso8601_string(),
                "timeZone": self.timezone
            },
            "availabilityViewInterval": 15
        }

        try:
            response = requests.post(
                url,
                headers=self.headers,
                json=payload,
                timeout=30
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.RequestException as e:
            raise BusyDataError(f"Failed to fetch schedule from Microsoft Graph: {e}") from e
        except ValueError as e:
            raise BusyDataError(f"Microsoft Graph returned invalid JSON: {e}") from e

        return self._parse_schedule_response(data)

    def _parse_schedule_response(self, response_data: Dict[str, Any]) -> Dict[str, List[BusyInterval]]:
        """
        Parse the getSchedule API response into our domain model.

        Response format:
        {
            "value": [
                {
                    "scheduleId": "user@example.com",
                    "scheduleItems": [
                        {
                            "status": "busy",
                            "start": {"dateTime": "...", "timeZone": "..."},
                            "end": {"dateTime": "...", "timeZone": "..."}
                        }
                    ]
                }
            ]
        }
        """
        busy_times: Dict[str, List[BusyInterval]] = {}

        for schedule in response_data.get("value", []):
            email = schedule.get("scheduleId", "").lower()
            busy_ranges: List[BusyInterval] = []

            for item in schedule.get("scheduleItems", []):
                if item.get("status", "").lower() not in self.BUSY_STATUSES:
                    continue

                try:
                    busy_ranges.append(BusyInterval(
                        start=self._parse_datetime(item["start"]),
                        end=self._parse_datetime(item["end"])
                    ))
                except (KeyError, ValueError) as e:
                    logger.warning("Could not parse schedule item for %s: %s", email, e)

            busy_times[email] = busy_ranges

        return busy_times

    def _parse_datetime(self, value: Dict[str, str]) -> DateTime:
        """
        Parse a Graph dateTimeTimeZone value into the configured timezone.

        Results are requested in the configured timezone via the Prefer header.
        """
        dt = pendulum.parse(value["dateTime"], tz=self.timezone)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {value['dateTime']}")
