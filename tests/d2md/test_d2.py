from pathlib import Path

import pytest

from d2md.config import ThemeSettings
from d2md.d2 import D2Renderer, build_d2_args, get_d2_diagram_size
from d2md.exceptions import D2RenderError, D2SizeError, ExecError
from d2md.meta import get_meta

OUT = Path("/tmp/out.svg")


class TestBuildArgs:
    def test_defaults(self, settings):
        args = build_d2_args(get_meta(None, settings), OUT)

        assert args == [
            "--layout=dagre",
            "--theme=0",
            "--sketch=false",
            "--pad=100",
            "--dark-theme=200",
            "-",
            str(OUT),
        ]

    def test_dark_theme_disabled_by_document(self, make_settings):
        settings = make_settings(theme=ThemeSettings(dark=False))

        args = build_d2_args(get_meta(None, settings), OUT)

        assert not any(arg.startswith("--dark-theme") for arg in args)

    def test_dark_theme_disabled_by_block(self, settings):
        args = build_d2_args(get_meta("darkTheme=false", settings), OUT)

        assert not any(arg.startswith("--dark-theme") for arg in args)

    def test_optional_arguments(self, settings):
        meta = get_meta("sketch pad=5 theme=4 animateInterval=400 target=layers.x", settings)

        args = build_d2_args(meta, OUT)

        assert args == [
            "--layout=dagre",
            "--theme=4",
            "--sketch=true",
            "--pad=5",
            "--dark-theme=200",
            "--animate-interval=400",
            "--target='layers.x'",
            "-",
            str(OUT),
        ]

    def test_zero_animate_interval_is_omitted(self, settings):
        args = build_d2_args(get_meta("animateInterval=0", settings), OUT)

        assert not any(arg.startswith("--animate-interval") for arg in args)


class TestDiagramSize:
    @pytest.mark.asyncio
    async def test_reads_viewbox(self, tmp_path):
        path = tmp_path / "d.svg"
        path.write_text('<svg><svg viewBox="0 0 640 480"></svg></svg>')

        size = await get_d2_diagram_size(path)

        assert size is not None
        assert (size.width, size.height) == (640, 480)

    @pytest.mark.asyncio
    async def test_missing_viewbox_is_unsized(self, tmp_path):
        path = tmp_path / "d.svg"
        path.write_text('<svg width="10" height="10"></svg>')

        assert await get_d2_diagram_size(path) is None

    @pytest.mark.asyncio
    async def test_unreadable_file_raises(self, tmp_path):
        path = tmp_path / "missing.svg"

        with pytest.raises(D2SizeError) as exc_info:
            await get_d2_diagram_size(path)

        assert exc_info.value.path == path
        assert isinstance(exc_info.value.__cause__, OSError)


class TestD2Renderer:
    @pytest.mark.asyncio
    async def test_generate_feeds_source_on_stdin(self, tmp_path, settings, fake_d2):
        renderer = D2Renderer(runner=fake_d2)
        output = tmp_path / "nested" / "dir" / "a-0.svg"

        size = await renderer.generate(get_meta(None, settings), "a -> b", output)

        assert size is not None
        assert (size.width, size.height) == (640, 480)
        assert output.exists()
        command, args, stdin = fake_d2.calls[0]
        assert command == "d2"
        assert stdin == "a -> b"
        assert args[-2:] == ["-", str(output)]

    @pytest.mark.asyncio
    async def test_generate_failure_chains_cause(self, tmp_path, settings, make_fake_d2):
        renderer = D2Renderer(runner=make_fake_d2(fail_on="boom"))

        with pytest.raises(D2RenderError) as exc_info:
            await renderer.generate(get_meta(None, settings), "boom", tmp_path / "a.svg")

        assert isinstance(exc_info.value.__cause__, ExecError)
        assert exc_info.value.__cause__.returncode == 1

    @pytest.mark.asyncio
    async def test_custom_command(self, tmp_path, settings, fake_d2):
        renderer = D2Renderer("/opt/d2/bin/d2", runner=fake_d2)

        await renderer.generate(get_meta(None, settings), "a", tmp_path / "a.svg")

        assert fake_d2.calls[0][0] == "/opt/d2/bin/d2"

    @pytest.mark.asyncio
    async def test_is_installed(self, make_fake_d2):
        assert await D2Renderer(runner=make_fake_d2(version="0.6.5")).is_installed() is True

    @pytest.mark.asyncio
    async def test_malformed_version(self, make_fake_d2):
        assert await D2Renderer(runner=make_fake_d2(version="v0.6.5")).is_installed() is False
        assert await D2Renderer(runner=make_fake_d2(version="0.6")).is_installed() is False

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        async def missing(command, args, stdin):
            raise ExecError(command, None, "No such file or directory")

        assert await D2Renderer(runner=missing).is_installed() is False

    @pytest.mark.asyncio
    async def test_empty_version_output(self):
        async def silent(command, args, stdin):
            return []

        assert await D2Renderer(runner=silent).is_installed() is False

    @pytest.mark.asyncio
    async def test_missing_output_after_successful_render(self, tmp_path, settings):
        async def writes_nothing(command, args, stdin):
            return []

        output = tmp_path / "a.svg"

        with pytest.raises(D2SizeError) as exc_info:
            await D2Renderer(runner=writes_nothing).generate(get_meta(None, settings), "a", output)

        assert exc_info.value.path == output

    @pytest.mark.asyncio
    async def test_output_directory_cannot_be_created(self, tmp_path, settings, fake_d2):
        (tmp_path / "public").write_text("not a directory")

        with pytest.raises(D2RenderError) as exc_info:
            await D2Renderer(runner=fake_d2).generate(get_meta(None, settings), "a", tmp_path / "public" / "a.svg")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert fake_d2.calls == []
