"""
In-memory project store backing the reference service.
"""

from __future__ import annotations

import copy
import json
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..tree.models import ElementNode, dump_elements

logger = logging.getLogger("screenflow.server.store")

DEFAULT_CONFIG_VERSION = "1.0.0"


@dataclass
class Variant:
    variant_id: str
    name: str = ""
    weight: float = 1.0
    screens: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Variant":
        return cls(
            variant_id=str(data.get("variant_id") or data.get("id") or ""),
            name=str(data.get("name") or ""),
            weight=float(data["weight"]) if data.get("weight") is not None else 1.0,
            screens=copy.deepcopy(data.get("screens") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"variant_id": self.variant_id, "name": self.name, "weight": self.weight, "screens": copy.deepcopy(self.screens)}


@dataclass
class Experiment:
    id: str
    name: str = ""
    status: str = "active"
    variants: List[Variant] = field(default_factory=list)
    assignments: Dict[str, str] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Experiment":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            status=str(data.get("status") or "active"),
            variants=[Variant.from_dict(v) for v in data.get("variants") or []],
            assignments=dict(data.get("assignments") or {}),
        )

    def variant(self, variant_id: str) -> Optional[Variant]:
        return next((v for v in self.variants if v.variant_id == variant_id), None)

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "variants": [v.to_dict() for v in self.variants]}


@dataclass
class Project:
    id: str
    api_keys: List[str] = field(default_factory=list)
    organization_id: Optional[str] = None
    config_id: Optional[str] = None
    version: str = DEFAULT_CONFIG_VERSION
    screens: List[Dict[str, Any]] = field(default_factory=list)
    experiments: List[Experiment] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=str(data.get("id") or ""),
            api_keys=[str(k) for k in data.get("api_keys") or []],
            organization_id=data.get("organization_id"),
            config_id=data.get("config_id"),
            version=str(data.get("version") or DEFAULT_CONFIG_VERSION),
            screens=copy.deepcopy(data.get("screens") or []),
            experiments=[Experiment.from_dict(e) for e in data.get("experiments") or []],
        )

    def experiment(self, experiment_id: str) -> Optional[Experiment]:
        return next((e for e in self.experiments if e.id == experiment_id), None)

    def screen(self, screen_id: str) -> Optional[Dict[str, Any]]:
        return next((s for s in self.screens if s.get("id") == screen_id), None)


def weighted_choice(variants: List[Variant], rng: Callable[[], float] = random.random) -> Variant:
    total = sum(v.weight for v in variants)
    point = rng() * total
    for variant in variants:
        if point < variant.weight:
            return variant
        point -= variant.weight
    return variants[0]


class ProjectStore:
    def __init__(self, projects: Optional[List[Project]] = None, rng: Callable[[], float] = random.random) -> None:
        self._projects: Dict[str, Project] = {}
        self._keys: Dict[str, str] = {}
        self._rng = rng
        for project in projects or []:
            self.add_project(project)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectStore":
        return cls([Project.from_dict(p) for p in data.get("projects") or []])

    @classmethod
    def from_file(cls, path: str | Path) -> "ProjectStore":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        store = cls.from_dict(data)
        logger.info("Loaded %d project(s) from %s", len(store._projects), path)
        return store

    def add_project(self, project: Project) -> None:
        self._projects[project.id] = project
        for key in project.api_keys:
            self._keys[key] = project.id

    def by_api_key(self, api_key: Optional[str]) -> Optional[Project]:
        if not api_key:
            return None
        project_id = self._keys.get(api_key)
        return self._projects.get(project_id) if project_id else None

    def config_payload(self, project: Project) -> Dict[str, Any]:
        return {
            "config": {"version": project.version, "screens": copy.deepcopy(project.screens)},
            "version": project.version,
            "config_id": project.config_id,
            "experiments": [e.summary() for e in project.experiments if e.is_active],
            "organization_id": project.organization_id,
            "project_id": project.id,
        }

    def assign_variant(self, project: Project, experiment_id: str, user_id: str) -> Tuple[Experiment, Variant, bool]:
        """
        Sticky weighted assignment. Raises ``KeyError`` for an unknown
        experiment and ``ValueError`` for an inactive one or one without variants.
        """

        experiment = project.experiment(experiment_id)
        if experiment is None:
            raise KeyError(experiment_id)
        existing = experiment.assignments.get(user_id)
        if existing:
            variant = experiment.variant(existing)
            if variant is not None:
                return experiment, variant, True
        if not experiment.is_active:
            raise ValueError("Experiment is not active")
        if not experiment.variants:
            raise ValueError("Experiment has no variants")
        variant = weighted_choice(experiment.variants, self._rng)
        experiment.assignments[user_id] = variant.variant_id
        return experiment, variant, False

    def record_events(self, project: Project, events: List[Dict[str, Any]]) -> int:
        for event in events:
            project.events.append({**event, "project_id": project.id, "organization_id": project.organization_id})
        return len(events)

    def replace_elements(self, project: Project, screen_id: str, elements: List[ElementNode]) -> Dict[str, Any]:
        screen = project.screen(screen_id)
        if screen is None:
            raise KeyError(screen_id)
        screen["elements"] = dump_elements(elements)
        screen["type"] = "noboard_screen"
        return screen
