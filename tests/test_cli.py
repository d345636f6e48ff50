"""Tests for the command-line entry point.

Taichi is initialized once per test session, so these tests stop short of
the point where main() would initialize it again.
"""

import pytest


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        from pathtracer.cli import build_parser

        args = build_parser().parse_args(["out.png"])
        assert args.output == "out.png"
        assert args.width == 1000
        assert args.height == 500
        assert args.samples == 100
        assert args.max_depth == 50
        assert args.arch == "cpu"
        assert not args.no_bvh
        assert not args.motion_blur
        assert args.texture is None

    def test_options(self):
        from pathtracer.cli import build_parser

        args = build_parser().parse_args(
            ["out.jpg", "--width", "64", "--samples", "4", "--no-bvh", "--motion-blur", "--seed", "9"]
        )
        assert args.width == 64
        assert args.samples == 4
        assert args.seed == 9
        assert args.no_bvh
        assert args.motion_blur

    def test_missing_output_is_usage_error(self):
        from pathtracer.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("arch", ["tpu", "metal"])
    def test_unknown_arch_is_usage_error(self, arch):
        from pathtracer.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["out.png", "--arch", arch])
        assert exc_info.value.code == 2


class TestMain:
    """Tests for main() failures detected before rendering."""

    @pytest.mark.parametrize("output", ["out.gif", "out"])
    def test_unsupported_format(self, tmp_path, output):
        from pathtracer.cli import main

        assert main([str(tmp_path / output), "--log-level", "CRITICAL"]) == 1
        assert not (tmp_path / output).exists()
