"""Test module for the command-line tool"""

import csv_to_map
from csvmap.csv_parsing import parse_csv


class TestRender:

    def test_render_with_coordinates(self, tmp_path, city_csv, capsys):
        source = tmp_path / "cities.csv"
        source.write_text(city_csv, encoding="utf-8")
        output = tmp_path / "cities.html"

        code = csv_to_map.main(["render", str(source), str(output), "--category", "Country"])

        assert code == 0
        html = output.read_text(encoding="utf-8")
        assert "48.8566" in html
        out = capsys.readouterr().out
        assert "Mapped 2/3 rows, 2 shown after filtering" in out
        assert "Categories found: 2" in out

    def test_render_with_filter_and_search(self, tmp_path, city_csv, capsys):
        source = tmp_path / "cities.csv"
        source.write_text(city_csv, encoding="utf-8")
        output = tmp_path / "out"

        code = csv_to_map.main([
            "render", str(source), str(output), "--filter", "Country=France", "--search", "par",
        ])

        assert code == 0
        assert (tmp_path / "out.html").exists()
        assert "1 shown after filtering" in capsys.readouterr().out

    def test_render_with_geocoding(self, tmp_path, places_csv, monkeypatch, stub_geocoder, capsys):
        source = tmp_path / "places.csv"
        source.write_text(places_csv, encoding="utf-8")
        monkeypatch.setattr(csv_to_map, "create_geocoder", lambda config: stub_geocoder)

        code = csv_to_map.main(["render", str(source), str(tmp_path / "p.html"), "--geocode-column", "City"])

        assert code == 0
        assert stub_geocoder.calls == [["Paris", "Berlin", "Atlantis"]]
        assert "Mapped 2/3 rows" in capsys.readouterr().out

    def test_needs_geocode_column(self, tmp_path, places_csv):
        source = tmp_path / "places.csv"
        source.write_text(places_csv, encoding="utf-8")
        assert csv_to_map.main(["render", str(source), str(tmp_path / "p.html")]) == 1

    def test_bad_filter(self, tmp_path, city_csv):
        source = tmp_path / "cities.csv"
        source.write_text(city_csv, encoding="utf-8")
        assert csv_to_map.main(["render", str(source), str(tmp_path / "c.html"), "--filter", "Country"]) == 1

    def test_malformed_csv(self, tmp_path):
        source = tmp_path / "bad.csv"
        source.write_text("just,a,header\n", encoding="utf-8")
        assert csv_to_map.main(["render", str(source), str(tmp_path / "bad.html")]) == 1

    def test_refuses_to_overwrite(self, tmp_path, city_csv):
        source = tmp_path / "cities.csv"
        source.write_text(city_csv, encoding="utf-8")
        output = tmp_path / "cities.html"
        output.write_text("keep me", encoding="utf-8")

        assert csv_to_map.main(["render", str(source), str(output)]) == 1
        assert output.read_text(encoding="utf-8") == "keep me"


class TestTemplate:

    def test_writes_sample(self, tmp_path):
        output = tmp_path / "sample.csv"
        assert csv_to_map.main(["template", "--output", str(output)]) == 0
        table = parse_csv(output.read_text(encoding="utf-8"))
        assert table.headers[:2] == ["Name", "City"]
        assert len(table) == 3

    def test_no_command(self):
        assert csv_to_map.main([]) == 1
