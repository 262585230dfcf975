from pathlib import Path

import pytest
from pydantic import ValidationError

from epubcheck_service.config import Settings
from epubcheck_service.engine.errors import EngineInvocationError
from epubcheck_service.engine.models import (
    FailureReason,
    InvocationRequest,
    TargetVersion,
    ValidateMode,
    ValidateProfile,
)
from epubcheck_service.engine.runner import ProcessInvoker

OUTPUT = Path("/tmp/epubcheck-test.json")

ALL_REQUESTS = [
    InvocationRequest(path="/books/a.epub", mode=mode, profile=profile, version=version)
    for mode in ValidateMode
    for profile in ValidateProfile
    for version in [None, *TargetVersion]
]


def test_default_request_is_json_flag_then_path() -> None:
    args = ProcessInvoker.build_arguments(InvocationRequest(path="/books/a.epub"), OUTPUT)

    assert args == ["--json", str(OUTPUT), "/books/a.epub"]


def test_single_document_request_full_ordering() -> None:
    request = InvocationRequest(
        path="/books/EPUB/package.opf",
        mode=ValidateMode.OPF,
        profile=ValidateProfile.EDUPUB,
        version=TargetVersion.EPUB2,
    )

    args = ProcessInvoker.build_arguments(request, OUTPUT)

    assert args == [
        "--json", str(OUTPUT),
        "--mode", "opf",
        "--profile", "edupub",
        "-v", "2.0",
        "/books/EPUB/package.opf",
    ]


@pytest.mark.parametrize("request_", ALL_REQUESTS)
def test_json_flag_first_and_path_last(request_: InvocationRequest) -> None:
    args = ProcessInvoker.build_arguments(request_, OUTPUT)

    assert args[:2] == ["--json", str(OUTPUT)]
    assert args[-1] == request_.path


@pytest.mark.parametrize("request_", ALL_REQUESTS)
def test_mode_flag_only_for_non_default_modes(request_: InvocationRequest) -> None:
    args = ProcessInvoker.build_arguments(request_, OUTPUT)

    if request_.mode == ValidateMode.EPUB:
        assert "--mode" not in args
    else:
        assert args.count("--mode") == 1
        assert args[args.index("--mode") + 1] == request_.mode.value


@pytest.mark.parametrize("request_", ALL_REQUESTS)
def test_profile_flag_only_for_non_default_profiles(request_: InvocationRequest) -> None:
    args = ProcessInvoker.build_arguments(request_, OUTPUT)

    if request_.profile == ValidateProfile.DEFAULT:
        assert "--profile" not in args
    else:
        assert args.count("--profile") == 1
        assert args[args.index("--profile") + 1] == request_.profile.value


@pytest.mark.parametrize("request_", ALL_REQUESTS)
def test_version_flag_iff_version_and_single_document_mode(request_: InvocationRequest) -> None:
    args = ProcessInvoker.build_arguments(request_, OUTPUT)

    expected = request_.version is not None and request_.mode != ValidateMode.EPUB
    assert ("-v" in args) == expected
    if expected:
        assert args[args.index("-v") + 1] == request_.version.value


def test_request_is_immutable() -> None:
    request = InvocationRequest(path="/books/a.epub")

    with pytest.raises(ValidationError):
        request.path = "/books/b.epub"


def test_output_paths_are_unique(tmp_path) -> None:
    invoker = ProcessInvoker(Settings(), search_paths=[], scratch_dir=tmp_path)

    paths = {invoker.new_output_path() for _ in range(500)}

    assert len(paths) == 500
    for path in paths:
        assert path.parent == tmp_path
        assert path.name.startswith("epubcheck-")
        assert path.suffix == ".json"


def test_resolve_prefers_override(tmp_path) -> None:
    override = tmp_path / "custom" / "epubcheck.jar"
    override.parent.mkdir()
    override.touch()
    fallback = tmp_path / "bin" / "epubcheck.jar"
    fallback.parent.mkdir()
    fallback.touch()

    invoker = ProcessInvoker(Settings(EPUBCHECK_JAR_PATH=str(override)), search_paths=[fallback])

    assert invoker.resolve_executable_path() == override


def test_resolve_falls_back_to_first_existing_search_path(tmp_path) -> None:
    missing = tmp_path / "nowhere" / "epubcheck.jar"
    present = tmp_path / "bin" / "epubcheck.jar"
    present.parent.mkdir()
    present.touch()
    later = tmp_path / "later.jar"
    later.touch()

    invoker = ProcessInvoker(Settings(EPUBCHECK_JAR_PATH=""), search_paths=[missing, present, later])

    assert invoker.resolve_executable_path() == present


def test_resolve_lists_every_location_when_missing(tmp_path) -> None:
    override = tmp_path / "override.jar"
    candidates = [tmp_path / "a" / "epubcheck.jar", tmp_path / "b" / "epubcheck.jar"]
    invoker = ProcessInvoker(Settings(EPUBCHECK_JAR_PATH=str(override)), search_paths=candidates)

    with pytest.raises(EngineInvocationError) as exc_info:
        invoker.resolve_executable_path()

    assert exc_info.value.reason == FailureReason.EXECUTABLE_NOT_FOUND
    for path in [override, *candidates]:
        assert str(path) in exc_info.value.diagnostic


def test_jar_launched_through_java() -> None:
    settings = Settings(JAVA_BINARY="/opt/jdk/bin/java", JAVA_OPTIONS=["-Xss1024k"])
    invoker = ProcessInvoker(settings, search_paths=[])

    command = invoker.launch_command(Path("/opt/epubcheck/epubcheck.jar"))

    assert command == ["/opt/jdk/bin/java", "-Xss1024k", "-jar", "/opt/epubcheck/epubcheck.jar"]


def test_native_launcher_executed_directly() -> None:
    invoker = ProcessInvoker(Settings(), search_paths=[])

    assert invoker.launch_command(Path("/usr/local/bin/epubcheck")) == ["/usr/local/bin/epubcheck"]
