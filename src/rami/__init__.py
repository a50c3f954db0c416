"""
Rami - Planting area onboarding.

Packages:
- onboarding: the wizard step engine (answers, steps, validation, drafts)
- rami: application shell (settings, storage client, web app, CLI)
"""

__version__ = "2.0.0"
