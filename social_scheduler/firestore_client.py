import os
import logging
from typing import Optional

from google.cloud.firestore_v1 import AsyncClient

logger = logging.getLogger(__name__)


class FirestoreDB:
    """
    Owns the :class:`google.cloud.firestore_v1.AsyncClient` shared by every
    scheduler model.

    The same object can transparently connect to:

    * **A local Firestore emulator**, for development and CI.
    * **The real Firestore backend**, the default when no emulator host is set.

    Tests may also replace :attr:`client` with any object exposing the
    ``AsyncClient`` collection/document API.
    """

    def __init__(
        self,
        project_id: str,
        database: Optional[str] = None,
        credentials=None,
        emulator_host: Optional[str] = None,
    ):
        """
        Parameters
        ----------
        project_id :
            Google Cloud project identifier (e.g. ``"my-gcp-project"``).
        database :
            Optional Firestore **database ID** (defaults to the default database).
        credentials :
            Explicit credentials object; if *None*, the Google SDK default
            credentials chain is used.
        emulator_host :
            Host and port of a running **Firestore emulator** such as
            ``"localhost:8080"``.
        """
        self.project_id = project_id
        self.database = database
        self.credentials = credentials
        self._emulator_host = emulator_host

        self.client: AsyncClient = self._init_client()

    @classmethod
    def from_env(cls, credentials=None) -> "FirestoreDB":
        """
        Build an instance from ``GOOGLE_CLOUD_PROJECT``, ``FIRESTORE_DATABASE``
        and ``FIRESTORE_EMULATOR_HOST``.
        """
        project_id = os.environ.get("GOOGLE_CLOUD_PROJECT") or ""
        emulator_host = os.environ.get("FIRESTORE_EMULATOR_HOST", "").strip() or None
        if not project_id:
            if not emulator_host:
                raise RuntimeError("GOOGLE_CLOUD_PROJECT must be set to reach Firestore.")
            project_id = "demo-social-scheduler"
        return cls(
            project_id=project_id,
            database=os.environ.get("FIRESTORE_DATABASE") or None,
            credentials=credentials,
            emulator_host=emulator_host,
        )

    # --------------------------------------------------------------------- #
    # Internal helpers                                                      #
    # --------------------------------------------------------------------- #

    def _init_client(self) -> AsyncClient:
        """
        Instantiate and return an :class:`AsyncClient`.

        * If ``self._emulator_host`` is set, ``FIRESTORE_EMULATOR_HOST`` is
          exported so the Google client libraries route traffic to it.
        * Otherwise any previously exported ``FIRESTORE_EMULATOR_HOST`` is
          removed so the real backend is hit.
        """
        if self._emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = self._emulator_host
            logger.info("Using Firestore emulator on %s", self._emulator_host)
        else:
            os.environ.pop("FIRESTORE_EMULATOR_HOST", None)
        return AsyncClient(
            project=self.project_id,
            database=self.database,
            credentials=self.credentials,
        )

    # --------------------------------------------------------------------- #
    # Public utility methods                                                #
    # --------------------------------------------------------------------- #

    @property
    def emulator_host(self) -> Optional[str]:
        return self._emulator_host

    def use_emulator(self, host: str = "localhost:8080"):
        """Switch to a local emulator and recreate the client."""
        self._emulator_host = host
        self.client = self._init_client()
        logger.info("Emulator enabled on %s", host)

    def clear_emulator(self):
        """Disable the emulator and reconnect to the production endpoint."""
        self._emulator_host = None
        self.client = self._init_client()
        logger.info("Emulator disabled, using real Firestore.")
