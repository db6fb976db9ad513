"""
VolunteerBazaar — Volunteer ↔ Organization Matching Core
=========================================================
Matches volunteers with organizations posting opportunities, runs the
application/acceptance workflow, keeps a two-party messaging inbox per
accepted placement, and rewards volunteers through a points/hours/badges
ledger.

Package layout::

    bazaar/
    ├── config.py          # YAML → typed policy config
    ├── constants.py       # Dataset keys, default milestones, link paths
    ├── errors.py          # Exception taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   ├── models.py      # `datasets` table + enums
    │   ├── store.py       # DatasetStore — whole-dataset load/save
    │   └── seed.py        # Empty-dataset seeder
    ├── engine/
    │   ├── records.py     # Entity dataclasses + (de)serialisation
    │   ├── milestones.py  # Hour-milestone badge evaluation
    │   └── inbox.py       # Unread counts, read flips, ordering
    ├── services/
    │   ├── gamification_service.py  # Points / hours / badges ledger
    │   ├── messaging_service.py     # Conversations + messages
    │   ├── notification_service.py  # Per-user notifications
    │   ├── application_service.py   # Application persistence + transitions
    │   ├── workflow_service.py      # Accept / reject / performance orchestration
    │   ├── directory_service.py     # Users + opportunities
    │   ├── import_service.py        # Legacy flat-JSON import
    │   └── actions.py               # {success, message, ...} result wrappers
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT → current user, store injection
        └── routes/        # REST endpoints
"""

__version__ = "0.1.0"
