"""Shared fixtures: small canonical client/worker/task collections."""

import pytest


@pytest.fixture
def clients():
    return [
        {
            "ClientID": "C1",
            "ClientName": "Acme Corp",
            "PriorityLevel": 5,
            "RequestedTaskIDs": ["T1", "T2"],
            "GroupTag": "enterprise",
            "AttributesJSON": '{"budget": 1000}',
        },
        {
            "ClientID": "C2",
            "ClientName": "Globex",
            "PriorityLevel": 2,
            "RequestedTaskIDs": ["T3"],
            "GroupTag": "standard",
            "AttributesJSON": "{}",
        },
        {
            "ClientID": "C3",
            "ClientName": "Initech",
            "PriorityLevel": 3,
            "RequestedTaskIDs": [],
            "GroupTag": "basic",
            "AttributesJSON": "{}",
        },
    ]


@pytest.fixture
def workers():
    return [
        {
            "WorkerID": "W1",
            "WorkerName": "Alice",
            "Skills": ["JavaScript", "React"],
            "AvailableSlots": [1, 2, 3],
            "MaxLoadPerPhase": 2,
            "WorkerGroup": "frontend",
            "QualificationLevel": 4,
        },
        {
            "WorkerID": "W2",
            "WorkerName": "Bob",
            "Skills": ["Python", "SQL"],
            "AvailableSlots": [1, 2],
            "MaxLoadPerPhase": 2,
            "WorkerGroup": "backend",
            "QualificationLevel": 3,
        },
        {
            "WorkerID": "W3",
            "WorkerName": "Carol",
            "Skills": ["Figma"],
            "AvailableSlots": [2, 3],
            "MaxLoadPerPhase": 1,
            "WorkerGroup": "design",
            "QualificationLevel": 2,
        },
    ]


@pytest.fixture
def tasks():
    return [
        {
            "TaskID": "T1",
            "TaskName": "Landing page",
            "Category": "frontend",
            "Duration": 1,
            "RequiredSkills": ["JavaScript"],
            "PreferredPhases": [1],
            "MaxConcurrent": 1,
        },
        {
            "TaskID": "T2",
            "TaskName": "Data pipeline",
            "Category": "backend",
            "Duration": 2,
            "RequiredSkills": ["Python"],
            "PreferredPhases": [2],
            "MaxConcurrent": 1,
        },
        {
            "TaskID": "T3",
            "TaskName": "Brand refresh",
            "Category": "design",
            "Duration": 1,
            "RequiredSkills": ["Figma"],
            "PreferredPhases": [3],
            "MaxConcurrent": 1,
        },
    ]
