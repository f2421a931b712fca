"""Command-line entry points."""

import pytest

from geonav.cli.main import build_parser, main


class TestParser:

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_walk_defaults(self):
        args = build_parser().parse_args(["walk"])
        assert args.level == 2
        assert args.ticks == 100
        assert tuple(args.start) == (0.0, 0.0, 1.0)
        assert not args.brute_force


class TestMeshCommand:

    def test_summary(self, capsys):
        main(["mesh", "--level", "1"])
        out = capsys.readouterr().out
        assert "=== Geodesic Sphere ===" in out
        assert "Faces              : 80" in out
        assert "Vertices           : 42" in out
        assert "degree 11        : 60 faces" in out
        assert "degree 12        : 20 faces" in out

    def test_pairwise_method(self, capsys):
        main(["mesh", "--level", "0", "--method", "pairwise"])
        out = capsys.readouterr().out
        assert "degree  9        : 20 faces" in out
        assert "Adjacency links    : 90" in out

    def test_tolerance_above_half_edge(self):
        with pytest.raises(SystemExit, match="--tolerance"):
            main(["mesh", "--level", "1", "--tolerance", "0.5"])

    def test_small_tolerance_accepted(self, capsys):
        main(["mesh", "--level", "1", "--tolerance", "1e-6"])
        assert "degree 12        : 20 faces" in capsys.readouterr().out

    def test_level_above_cap(self):
        with pytest.raises(SystemExit, match="subdivision level"):
            main(["mesh", "--level", "5", "--max-level", "4"])

    def test_exports(self, tmp_path, capsys):
        png = tmp_path / "mesh.png"
        html = tmp_path / "out" / "mesh.html"
        main(["mesh", "--level", "1", "--png", str(png), "--html", str(html)])
        assert png.stat().st_size > 0
        assert html.stat().st_size > 0


class TestDistanceCommand:

    def test_same_face(self, capsys):
        main(["distance", "--level", "1", "--source", "1", "--target", "1"])
        assert "distance(1, 1) = 0 [same]" in capsys.readouterr().out

    def test_adjacent_faces(self, capsys):
        main(["distance", "--level", "1", "--source", "1", "--target", "2"])
        assert "= 1 [adjacent]" in capsys.readouterr().out

    def test_unknown_face(self):
        with pytest.raises(SystemExit, match="not found"):
            main(["distance", "--level", "0", "--source", "1", "--target", "21"])


class TestWalkCommand:

    def test_walk_reports_state(self, capsys):
        main(["walk", "--level", "1", "--ticks", "20", "--dt", "0.05", "--turn-rate", "0.5"])
        out = capsys.readouterr().out
        assert "=== Surface Walk ===" in out
        assert "Mesh level         : 1 (80 faces)" in out
        assert "Ticks              : 20" in out

    def test_spinning_brute_force_with_progress(self, capsys):
        main([
            "walk", "--level", "1", "--ticks", "15", "--spin-deg", "2",
            "--brute-force", "--progress",
        ])
        captured = capsys.readouterr()
        assert "Face transitions" in captured.out
        assert "walk [" in captured.err

    def test_drag_before_walk(self, capsys):
        main(["walk", "--level", "1", "--ticks", "1", "--speed", "0", "--drag", "0", "0", "1", "1", "0", "0"])
        assert "Final center       : (+1.00000," in capsys.readouterr().out

    def test_zero_start_rejected(self):
        with pytest.raises(SystemExit, match="non-zero"):
            main(["walk", "--start", "0", "0", "0"])

    def test_level_above_cap(self):
        with pytest.raises(SystemExit):
            main(["walk", "--level", "8"])

    def test_exports(self, tmp_path, capsys):
        png = tmp_path / "walk.png"
        html = tmp_path / "walk.html"
        lonlat = tmp_path / "walk_map.png"
        main([
            "walk", "--level", "1", "--ticks", "10", "--dt", "0.1",
            "--png", str(png), "--html", str(html), "--map", str(lonlat),
        ])
        out = capsys.readouterr().out
        for path in (png, html, lonlat):
            assert path.stat().st_size > 0
        assert "Lon/lat map" in out
