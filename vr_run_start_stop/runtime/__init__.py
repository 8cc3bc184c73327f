"""SteamVR connection, script launching and the lifecycle state machine."""

from __future__ import annotations

from .gateway import ConnectOutcome, OpenVRGateway, RegistrationOutcome, RuntimeEvent, RuntimeGateway
from .scripts import ScriptRunner, find_scripts, launch_detached
from .state_machine import LifecycleMachine, LifecyclePhase

__all__ = [
    "ConnectOutcome",
    "LifecycleMachine",
    "LifecyclePhase",
    "OpenVRGateway",
    "RegistrationOutcome",
    "RuntimeEvent",
    "RuntimeGateway",
    "ScriptRunner",
    "find_scripts",
    "launch_detached",
]
