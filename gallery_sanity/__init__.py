"""
================================================================================
Gallery Sanity Check
================================================================================

End-to-end smoke check of the component gallery: boots the gallery server and
a browser automation driver, drives a live browser through a fixed script of
interactions, saves a screenshot and always tears the processes down.

Packages:
    - common: configuration and logging
    - framework: processes, remote sessions, polling
    - pages: gallery page object
    - scenarios: the interaction script
    - reporting: progress output and exit codes

Author: Automation Team
License: MIT
================================================================================
"""

__version__ = "1.0.0"
