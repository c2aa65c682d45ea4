"""Subject matchers: which pods a target governs."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass

from netloom.core import selectors
from netloom.core.models.policies import AdminSubject, LabelSelector
from netloom.matcher.traffic import InternalPeer


class SubjectMatcher(ABC):
    """Selects the pods a target applies to."""

    @abstractmethod
    def matches(self, candidate: InternalPeer) -> bool:
        """Check whether the internal peer is governed by this subject."""
        pass

    @abstractmethod
    def primary_key(self) -> str:
        """Stable identity used to merge targets."""
        pass

    @abstractmethod
    def target_string(self) -> str:
        """Human readable subject for tables."""
        pass


@dataclass(frozen=True)
class SubjectV1(SubjectMatcher):
    """Pods in one namespace selected by a v1 podSelector."""

    namespace: str
    pod_selector: LabelSelector

    def matches(self, candidate: InternalPeer) -> bool:
        return candidate.namespace == self.namespace and selectors.matches(self.pod_selector, candidate.pod_labels)

    def primary_key(self) -> str:
        return f'{{"Namespace": {json.dumps(self.namespace)}, "PodSelector": {selectors.serialize(self.pod_selector)}}}'

    def target_string(self) -> str:
        pods = "\n".join(selectors.table_lines(self.pod_selector))
        if pods == "all":
            pods = "all pods"
        return f"namespace: {self.namespace}\n{pods}"


@dataclass(frozen=True)
class SubjectAdmin(SubjectMatcher):
    """Namespaces, or pods within namespaces, selected by an admin policy subject."""

    namespace_selector: LabelSelector
    pod_selector: LabelSelector | None = None

    @classmethod
    def from_subject(cls, subject: AdminSubject) -> "SubjectAdmin":
        """Build from an ANP/BANP subject; the caller has validated that one form is set."""
        if subject.namespaces is not None:
            return cls(namespace_selector=subject.namespaces)
        assert subject.pods is not None
        return cls(namespace_selector=subject.pods.namespace_selector, pod_selector=subject.pods.pod_selector)

    def matches(self, candidate: InternalPeer) -> bool:
        if not selectors.matches(self.namespace_selector, candidate.namespace_labels):
            return False
        if self.pod_selector is None:
            return True
        return selectors.matches(self.pod_selector, candidate.pod_labels)

    def primary_key(self) -> str:
        if self.pod_selector is None:
            return f'{{"Namespaces": {selectors.serialize(self.namespace_selector)}}}'
        return (
            f'{{"NamespaceSelector": {selectors.serialize(self.namespace_selector)}, '
            f'"PodSelector": {selectors.serialize(self.pod_selector)}}}'
        )

    def target_string(self) -> str:
        namespaces = "\n".join(selectors.table_lines(self.namespace_selector))
        pods = "\n".join(selectors.table_lines(self.pod_selector)) if self.pod_selector is not None else "all"
        return f"Namespace labels:\n{namespaces}\nPod labels:\n{pods}"
