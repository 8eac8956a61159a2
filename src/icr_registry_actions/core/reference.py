"""Image reference parsing."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ImageReference:
    """An image reference split into its parts.

    ``name`` keeps the registry host, e.g. ``us.icr.io/team/app``.
    """

    name: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @property
    def host(self) -> Optional[str]:
        return registry_host(self.name)

    def with_tag(self, tag: str) -> str:
        return f"{self.name}:{tag}"

    def __str__(self) -> str:
        if self.digest:
            return f"{self.name}@{self.digest}"
        if self.tag:
            return f"{self.name}:{self.tag}"
        return self.name


def registry_host(image: str) -> Optional[str]:
    """Return the part of ``image`` before the first ``/``, if any."""
    if "/" not in image:
        return None
    host = image.split("/", 1)[0]
    return host or None


def parse_image_reference(image: str) -> ImageReference:
    """이미지 참조 문자열을 이름, 태그, digest 구성요소로 파싱합니다.

    Args:
        image: 이미지 참조
            - 예: "us.icr.io/team/app:1.0"
            - 포트 포함 레지스트리: "localhost:5000/team/app"
            - digest 참조: "us.icr.io/team/app@sha256:abc..."

    Returns:
        ImageReference: 파싱된 참조 (태그가 없으면 tag=None)

    Examples:
        ref = parse_image_reference("us.icr.io/team/app:1.0")
        # 결과: ImageReference(name="us.icr.io/team/app", tag="1.0")

        ref = parse_image_reference("localhost:5000/team/app")
        # 결과: ImageReference(name="localhost:5000/team/app", tag=None)
    """
    digest: Optional[str] = None
    if "@" in image:
        image, digest = image.split("@", 1)

    # Split only on the last ':' and only when it follows the last '/',
    # so registry ports like localhost:5000/repo stay in the name
    last_segment = image.rsplit("/", 1)[-1]
    if ":" in last_segment:
        name, tag = image.rsplit(":", 1)
        return ImageReference(name=name, tag=tag or None, digest=digest)

    return ImageReference(name=image, digest=digest)
