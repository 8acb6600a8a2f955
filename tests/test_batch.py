import textwrap

import pandas as pd
import pytest
import responses

from unstats_explorer.downloader import batch as batch_module
from unstats_explorer.downloader.batch import (
    IndicatorJob,
    MetadataJob,
    SeriesJob,
    TrendJob,
    build_job,
    load_jobs,
    run_jobs,
)
from unstats_explorer.downloader.client import RequestFailure

from conftest import BASE_URL


def _write(path, body):
    path.write_text(textwrap.dedent(body), encoding="utf-8")


def test_load_jobs_from_yaml(tmp_path):
    _write(
        tmp_path / "a.yml",
        """
        output_dir: exports
        jobs:
          - kind: indicator
            indicator: 1.1
            geoareas: [USA, GBR]
            years: "2015-2017"
            output: poverty.csv
          - kind: series
            series: SI_POV_DAY1
            geoareas: "USA, JPN"
            years: [2019, 2020]
            expand_dimensions: true
          - kind: nope
          - kind: metadata
            collection: planets
        """,
    )
    _write(tmp_path / "b.yml", "jobs:\n  - kind: trends\n    series: SI_POV_DAY1\n    years: 2020\n")
    _write(tmp_path / "broken.yml", "jobs: [unclosed\n")
    _write(tmp_path / "ignored.txt", "jobs: []\n")

    jobs = load_jobs(str(tmp_path))

    assert [type(j) for j in jobs] == [IndicatorJob, SeriesJob, TrendJob]
    indicator, series, trend = jobs
    assert indicator.indicator == "1.1"
    assert indicator.geoareas == ["USA", "GBR"]
    assert indicator.years == [2015, 2016, 2017]
    assert indicator.output_dir == "exports"
    assert series.geoareas == ["USA", "JPN"]
    assert series.expand_dimensions is True
    assert series.output_dir == "exports"
    assert trend.areas == ["001"]
    assert trend.years == [2020]
    assert trend.output_dir is None


def test_build_job_rejects_incomplete_specs():
    assert build_job({"kind": "indicator"}) is None
    assert build_job({"kind": "series"}) is None
    assert build_job({"kind": "indicator", "indicator": "1.1.1", "years": "soon"}) is None
    assert isinstance(build_job({"kind": "metadata", "collection": "goals"}), MetadataJob)


class _StubJob(IndicatorJob):
    def __init__(self, result, **kwargs):
        super().__init__("1.1.1", **kwargs)
        self.result = result

    def run(self, client):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_run_jobs_exports_and_skips_failures(tmp_path):
    df = pd.DataFrame({"geoAreaCode": ["USA"], "value": [1.0]})
    jobs = [
        _StubJob(RequestFailure("v1/sdg/Indicator/Data", "HTTP 500")),
        _StubJob(df.iloc[0:0]),
        _StubJob(df, output="poverty.json"),
        _StubJob(df, output="poverty.doc"),
        _StubJob(df),
    ]

    written = run_jobs(object(), jobs, output_dir=str(tmp_path))

    assert len(written) == 2
    assert written[0] == tmp_path / "poverty.json"
    assert written[1].parent == tmp_path
    assert written[1].name.startswith("indicator_1.1.1_") and written[1].suffix == ".csv"


def test_run_jobs_honours_per_file_output_dir(tmp_path):
    job = _StubJob(pd.DataFrame({"value": [1]}), output="x.csv")
    job.output_dir = str(tmp_path / "from_yaml")

    written = run_jobs(object(), [job], output_dir=str(tmp_path / "default"))

    assert written == [tmp_path / "from_yaml" / "x.csv"]


@responses.activate
def test_metadata_workbook(client, tmp_path):
    lists = {
        "Goal": [{"code": "1", "title": "No poverty", "description": "End poverty"}],
        "Target": [{"code": "1.1", "goal": "1", "title": "Extreme poverty"}],
        "Indicator": [{"code": "1.1.1", "goal": "1", "target": "1.1", "description": "Poverty line"}],
        "Series": [{"code": "SI_POV_DAY1", "description": "Poverty", "indicator": ["1.1.1"]}],
        "GeoArea": [{"geoAreaCode": "001", "geoAreaName": "World"}],
    }
    for name, body in lists.items():
        responses.add(responses.GET, f"{BASE_URL}/v1/sdg/{name}/List", json=body, status=200)

    path = batch_module.export_metadata_workbook(client, tmp_path / "meta" / "sdg.xlsx")

    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert list(sheets) == ["Goals", "Targets", "Indicators", "Series", "Geographic Areas"]
    assert sheets["Series"].loc[0, "indicator"] == "1.1.1"


@pytest.mark.parametrize("kind, cls", [("series", SeriesJob), ("trends", TrendJob)])
def test_job_names(kind, cls):
    job = build_job({"kind": kind, "series": "SI_POV_DAY1"})
    assert isinstance(job, cls)
    assert job.name == f"{kind}_SI_POV_DAY1"
