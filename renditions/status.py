import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class StatusReporter:
    """
    Best-effort PATCH of job state to the tracking service. Failures are
    logged and never raised; a missing endpoint turns reporting off.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        id_field: str = "videoId",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = (endpoint or "").strip()
        self.id_field = id_field
        self.timeout = timeout
        self._session = session or requests.Session()

    def report(self, job_id: str, status: str):
        if not self.endpoint:
            logger.warning("No status endpoint configured; not reporting %s for %s", status, job_id)
            return
        payload = {self.id_field: job_id, "status": str(status)}
        try:
            response = self._session.patch(self.endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Error notifying status %s for %s: %s", status, job_id, e)
            return
        logger.info("Reported status %s for %s", status, job_id)

    def close(self):
        self._session.close()
