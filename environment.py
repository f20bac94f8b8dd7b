"""Describe the running Python host and wire a controller for it."""

from __future__ import annotations

import os
import platform
from queue import Queue
from typing import Any, Optional

import dashscope_capability
from config import JsonConfigStore
from dashscope_capability import DashscopeCapability
from interfaces import ConfigStore
from models import AudioFrame, EnvironmentDescriptor
from session_controller import SessionController

ENVIRONMENT_VARIABLE = "SPEECH_SESSION_ENVIRONMENT"


def host_identity() -> str:
    return os.getenv(ENVIRONMENT_VARIABLE) or f"python/{platform.python_version()} ({platform.system()})"


def detect_environment(
    api_key: str = "",
    audio_queue: Optional[Queue[AudioFrame | None]] = None,
    identity: Optional[str] = None,
) -> EnvironmentDescriptor:
    """Build the descriptor the capability detector classifies.

    A ``SpeechRecognition`` constructor is only advertised when the
    ``dashscope`` SDK imported successfully.
    """
    constructors = {}
    if dashscope_capability.dashscope is not None:
        queue: Queue[AudioFrame | None] = audio_queue if audio_queue is not None else Queue()
        constructors["SpeechRecognition"] = lambda: DashscopeCapability(api_key=api_key, audio_queue=queue)
    return EnvironmentDescriptor(
        identity=identity if identity is not None else host_identity(),
        constructors=constructors,
    )


def create_controller(
    config_store: Optional[ConfigStore] = None,
    audio_queue: Optional[Queue[AudioFrame | None]] = None,
    **kwargs: Any,
) -> SessionController:
    """Controller for this host using the stored API key and default options."""
    store = config_store or JsonConfigStore()
    environment = detect_environment(api_key=store.get_api_key(), audio_queue=audio_queue)
    kwargs.setdefault("options", store.get_options())
    return SessionController(environment, **kwargs)
