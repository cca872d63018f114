from __future__ import annotations

import dataclasses
import enum

NAME_SEPARATOR = " | "


class TargetKind(enum.Enum):
    LOCAL_DIRECTORY = "local_directory"
    REMOTE_URL = "remote_url"
    SHORTHAND = "shorthand"
    ACCOUNT = "account"
    INPUT_FILE = "input_file"


@dataclasses.dataclass(frozen=True)
class RepositoryLocation:
    url: str
    short_name: str
    is_fork: bool = False

    @property
    def is_local(self) -> bool:
        return self.url.startswith("file://")

    @property
    def local_path(self) -> str:
        return self.url[len("file://") :] if self.is_local else ""


@dataclasses.dataclass(frozen=True)
class ScanSet:
    label: str
    locations: tuple[RepositoryLocation, ...]
    kind: TargetKind

    def __len__(self) -> int:
        return len(self.locations)

    def merged_with(self, other: ScanSet) -> ScanSet:
        return ScanSet(
            label=f"{self.label}, {other.label}",
            locations=self.locations + other.locations,
            kind=self.kind,
        )


@dataclasses.dataclass(frozen=True)
class ScanCriteria:
    include_forks: bool = True
    include_private: bool = True


@dataclasses.dataclass(frozen=True)
class AuthorRecord:
    email: str = ""
    name: str = ""
    origin_is_fork: bool = False


@dataclasses.dataclass(frozen=True)
class MergedRecord:
    email: str
    names: tuple[str, ...] = ()
    is_fork: bool = False

    @property
    def names_display(self) -> str:
        return NAME_SEPARATOR.join(self.names)


@dataclasses.dataclass(frozen=True)
class FilterConfig:
    use_builtin_filters: bool = True
    include_name: bool = True
    include_fork_annotation: bool = True
    user_patterns: tuple[str, ...] = ()
