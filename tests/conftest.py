from __future__ import annotations

import pytest

from site_workforce.container import assemble
from site_workforce.geofence.model import GeofenceDefinition
from support import (
    SITE_LAT,
    SITE_LON,
    InMemoryLocationLog,
    InMemoryOvertime,
    InMemoryProjects,
    InMemorySessions,
    InMemoryTasks,
    RecordingNotifier,
)


@pytest.fixture
def projects():
    return InMemoryProjects({1: GeofenceDefinition(center_lat=SITE_LAT, center_lon=SITE_LON, radius=100)})


@pytest.fixture
def sessions():
    return InMemorySessions()


@pytest.fixture
def location_log():
    return InMemoryLocationLog()


@pytest.fixture
def overtime_repo():
    return InMemoryOvertime()


@pytest.fixture
def tasks_repo():
    return InMemoryTasks()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def container(projects, sessions, location_log, overtime_repo, tasks_repo, notifier):
    return assemble(
        projects=projects,
        sessions=sessions,
        location_log=location_log,
        overtime_requests=overtime_repo,
        tasks=tasks_repo,
        notifier=notifier,
    )
