"""Operation requests, one type per action."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, Union

from ..exceptions import ValidationError


class Action(str, Enum):
    PUSH = "push"
    PULL = "pull"
    TAG = "tag"
    RETAG = "retag"
    DELETE = "delete"
    NAMESPACE = "namespace"


class NamespaceAction(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    LIST = "list"


def input_name(attribute: str) -> str:
    """Map a field name to the input name users know (target_tag -> target-tag)."""
    return attribute.replace("_", "-")


def _require(action: Action, request: object, *attributes: str) -> None:
    missing = [
        input_name(attribute)
        for attribute in attributes
        if not getattr(request, attribute)
    ]
    if missing:
        raise ValidationError.for_missing(action.value, missing)


@dataclass(frozen=True)
class ScanOptions:
    enabled: bool = True
    fail_on_vulnerability: bool = True


@dataclass(frozen=True)
class PushRequest:
    image: str
    local_image: Optional[str] = None
    region: Optional[str] = None
    scan: ScanOptions = field(default_factory=ScanOptions)

    action = Action.PUSH

    def __post_init__(self) -> None:
        _require(self.action, self, "image")


@dataclass(frozen=True)
class PullRequest:
    image: str
    region: Optional[str] = None
    scan: ScanOptions = field(default_factory=ScanOptions)

    action = Action.PULL

    def __post_init__(self) -> None:
        _require(self.action, self, "image")


@dataclass(frozen=True)
class TagRequest:
    image: str
    target_tag: str
    region: Optional[str] = None

    action = Action.TAG

    def __post_init__(self) -> None:
        _require(self.action, self, "image", "target_tag")


@dataclass(frozen=True)
class RetagRequest:
    image: str
    source_tag: str
    target_tag: str
    region: Optional[str] = None

    action = Action.RETAG

    def __post_init__(self) -> None:
        _require(self.action, self, "image", "source_tag", "target_tag")


@dataclass(frozen=True)
class DeleteRequest:
    image: str
    region: Optional[str] = None

    action = Action.DELETE

    def __post_init__(self) -> None:
        _require(self.action, self, "image")


@dataclass(frozen=True)
class NamespaceRequest:
    namespace_action: NamespaceAction
    namespace: Optional[str] = None
    region: Optional[str] = None

    action = Action.NAMESPACE

    def __post_init__(self) -> None:
        _require(self.action, self, "namespace_action")
        if self.namespace_action == NamespaceAction.LIST:
            # The namespace input is ignored for list
            object.__setattr__(self, "namespace", None)
        else:
            _require(self.action, self, "namespace")


OperationRequest = Union[
    PushRequest, PullRequest, TagRequest, RetagRequest, DeleteRequest, NamespaceRequest
]


@dataclass
class OperationInputs:
    """Raw invocation inputs, as collected by the CLI."""

    action: Optional[str] = None
    image: Optional[str] = None
    local_image: Optional[str] = None
    source_tag: Optional[str] = None
    target_tag: Optional[str] = None
    namespace: Optional[str] = None
    namespace_action: Optional[str] = None
    region: Optional[str] = None
    scan: bool = True
    scan_fail_on_vulnerability: bool = True

    def describe(self) -> dict[str, object]:
        """Non-empty inputs, for logging."""
        return {
            input_name(f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) not in (None, "")
        }


def _parse_enum(enum_type, value: Optional[str], name: str):
    if not value:
        return None
    try:
        return enum_type(value.strip().lower())
    except ValueError:
        choices = "|".join(member.value for member in enum_type)
        raise ValidationError(
            f"Invalid {name} '{value}', expected one of {choices}"
        ) from None


def parse_request(inputs: OperationInputs) -> OperationRequest:
    """입력값을 액션별 요청 타입으로 변환합니다.

    Args:
        inputs: CLI 또는 호출자가 수집한 원시 입력값

    Returns:
        OperationRequest: 액션에 맞는 요청 객체 (필요한 필드만 포함)

    Raises:
        ValidationError: action이 없거나 잘못된 경우, 또는 필수 필드가 누락된 경우
            (누락된 필드 이름은 ValidationError.missing 에 담깁니다)

    Examples:
        request = parse_request(OperationInputs(action="tag", image="us.icr.io/ns/app:1"))
        # ValidationError: Action 'tag' requires: target-tag
    """
    action = _parse_enum(Action, inputs.action, "action")
    if action is None:
        raise ValidationError("An action is required", missing=("action",))

    scan = ScanOptions(
        enabled=inputs.scan, fail_on_vulnerability=inputs.scan_fail_on_vulnerability
    )
    image = inputs.image or ""

    if action == Action.PUSH:
        return PushRequest(
            image=image,
            local_image=inputs.local_image or None,
            region=inputs.region or None,
            scan=scan,
        )
    if action == Action.PULL:
        return PullRequest(image=image, region=inputs.region or None, scan=scan)
    if action == Action.TAG:
        return TagRequest(
            image=image,
            target_tag=inputs.target_tag or "",
            region=inputs.region or None,
        )
    if action == Action.RETAG:
        return RetagRequest(
            image=image,
            source_tag=inputs.source_tag or "",
            target_tag=inputs.target_tag or "",
            region=inputs.region or None,
        )
    if action == Action.DELETE:
        return DeleteRequest(image=image, region=inputs.region or None)

    namespace_action = _parse_enum(
        NamespaceAction, inputs.namespace_action, "namespace-action"
    )
    return NamespaceRequest(
        namespace_action=namespace_action,
        namespace=inputs.namespace or None,
        region=inputs.region or None,
    )
