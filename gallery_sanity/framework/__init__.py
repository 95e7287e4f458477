"""
================================================================================
Sanity Check Framework
================================================================================

Browser and process plumbing for the gallery sanity check.

Components:
    - process_supervisor: start/terminate the server and driver processes
    - remote_session: backend-neutral browser session interface
    - webdriver_session: W3C WebDriver backend (chromedriver)
    - cdp_session: Playwright-over-CDP backend
    - readiness: wait for the application to finish loading
    - wait_helpers: polling with deadlines

Author: Automation Team
License: MIT
================================================================================
"""

from .process_supervisor import ManagedProcess, ProcessSupervisor, SpawnError
from .readiness import wait_for_element
from .remote_session import (
    ElementNotFoundError,
    ElementReference,
    RemoteConnectionError,
    RemoteSession,
    RemoteSessionError,
    SessionClosedError,
    open_session,
)
from .wait_helpers import WaitConfig, WaitTimeoutError, poll_until

__all__ = [
    "ElementNotFoundError",
    "ElementReference",
    "ManagedProcess",
    "ProcessSupervisor",
    "RemoteConnectionError",
    "RemoteSession",
    "RemoteSessionError",
    "SessionClosedError",
    "SpawnError",
    "WaitConfig",
    "WaitTimeoutError",
    "open_session",
    "poll_until",
    "wait_for_element",
]
