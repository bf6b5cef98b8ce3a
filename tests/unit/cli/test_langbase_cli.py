# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import json
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from langbase.cli.langbase import LangbaseCLIParser
from langbase_api.common.errors import NotFoundError
from langbase_api.memory import MemoryRetrieveResponse

NESTED_FILTER = '["And", [["company", "Eq", "Langbase"], ["primative", "In", ["Chunk", "Threads"]]]]'


@pytest.fixture
def cli():
    parser = LangbaseCLIParser()

    def run(*argv: str) -> None:
        parser.run(parser.parse_args(list(argv)))

    return run


class TestFiltersCheck:
    def test_valid_filter_json_output(self, cli, capsys):
        cli("filters", "check", NESTED_FILTER, "--output", "json")

        output = json.loads(capsys.readouterr().out)
        assert output["filters"] == json.loads(NESTED_FILTER)
        assert output["depth"] == 2
        assert len(output["fingerprint"]) == 64

    def test_valid_filter_table_output(self, cli, capsys):
        cli("filters", "check", '["company", "Eq", "Langbase"]')
        assert "Filter is valid" in capsys.readouterr().out

    def test_filter_from_file(self, cli, capsys, tmp_path):
        path = tmp_path / "filter.json"
        path.write_text(NESTED_FILTER)
        cli("filters", "check", f"@{path}", "-o", "json")
        assert json.loads(capsys.readouterr().out)["depth"] == 2

    def test_invalid_filter_exits_with_reason(self, cli, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli("filters", "check", '["company", "Unknown", "x"]')
        assert exc_info.value.code == 1
        assert "unrecognized operator 'Unknown'" in capsys.readouterr().err

    def test_depth_limit_option(self, cli, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli("filters", "check", NESTED_FILTER, "--max-depth", "1")
        assert exc_info.value.code == 1
        assert "maximum depth of 1" in capsys.readouterr().err

    def test_not_json(self, cli, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli("filters", "check", "[company, Eq]")
        assert exc_info.value.code == 2
        assert "Filter is not valid JSON" in capsys.readouterr().err


class TestFiltersEval:
    def test_records_from_arguments(self, cli, capsys):
        cli(
            "filters",
            "eval",
            NESTED_FILTER,
            "--record",
            '{"company": "Langbase", "primative": "Chunk"}',
            "--record",
            '{"company": "Google", "primative": "Chunk"}',
            "-o",
            "json",
        )

        output = json.loads(capsys.readouterr().out)
        assert [r["matches"] for r in output["results"]] == [True, False]
        assert output["matched"] == 1
        assert output["total"] == 2

    def test_records_from_file(self, cli, capsys, tmp_path):
        path = tmp_path / "records.jsonl"
        path.write_text(
            '{"text": "a", "meta": {"company": "Langbase", "primative": "Threads"}}\n{"company": "Langbase"}\n'
        )
        cli("filters", "eval", NESTED_FILTER, "--records-file", str(path), "-o", "json")

        output = json.loads(capsys.readouterr().out)
        assert [r["record"] for r in output["results"]] == [
            {"company": "Langbase", "primative": "Threads"},
            {"company": "Langbase"},
        ]
        assert output["matched"] == 1

    def test_table_output(self, cli, capsys):
        cli("filters", "eval", '["company", "Eq", "Langbase"]', "--record", '{"company": "Langbase"}')
        assert "1 of 1 records match" in capsys.readouterr().out

    def test_requires_records(self, cli):
        with pytest.raises(SystemExit) as exc_info:
            cli("filters", "eval", '["company", "Eq", "Langbase"]')
        assert exc_info.value.code == 2

    def test_record_must_be_an_object(self, cli, capsys):
        with pytest.raises(SystemExit):
            cli("filters", "eval", '["company", "Eq", "Langbase"]', "--record", "[1]")
        assert "Record must be a JSON object" in capsys.readouterr().err


class TestMemoryRetrieve:
    @pytest.fixture
    def retriever(self):
        retriever = AsyncMock()
        retriever.retrieve.return_value = [
            MemoryRetrieveResponse(text="Primitives are ...", similarity=0.87, meta={"company": "Langbase"})
        ]
        with (
            patch("langbase.cli.memory.MemoryRetriever.from_config", return_value=retriever),
            patch.dict("os.environ", {"LANGBASE_API_KEY": "lb-key"}),
        ):
            yield retriever

    def test_retrieve_with_filter(self, cli, capsys, retriever):
        cli(
            "memory",
            "retrieve",
            "--memory",
            "langbase-docs",
            "--query",
            "What are primitives?",
            "--filter",
            '["company", "Eq", "Langbase"]',
            "--top-k",
            "3",
            "-o",
            "json",
        )

        retriever.retrieve.assert_awaited_once_with(
            "What are primitives?",
            [{"name": "langbase-docs", "filters": ["company", "Eq", "Langbase"]}],
            top_k=3,
        )
        output = json.loads(capsys.readouterr().out)
        assert output == [{"text": "Primitives are ...", "meta": {"company": "Langbase"}, "similarity": 0.87}]

    def test_retrieve_without_filter(self, cli, retriever):
        cli("memory", "retrieve", "--memory", "docs", "--query", "q")
        retriever.retrieve.assert_awaited_once_with("q", [{"name": "docs", "filters": None}], top_k=None)

    def test_api_error_exits(self, cli, capsys, retriever):
        retriever.retrieve.side_effect = NotFoundError(404, None, "Not Found", {})
        with pytest.raises(SystemExit) as exc_info:
            cli("memory", "retrieve", "--memory", "missing", "--query", "q")
        assert exc_info.value.code == 1
        assert "404 Not Found" in capsys.readouterr().err

    @pytest.mark.parametrize("top_k", ["0", "101"])
    def test_top_k_range(self, cli, top_k):
        with pytest.raises(SystemExit) as exc_info:
            cli("memory", "retrieve", "--memory", "docs", "--query", "q", "--top-k", top_k)
        assert exc_info.value.code == 2

    def test_missing_config_file(self, cli, capsys, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli("memory", "retrieve", "--memory", "docs", "--query", "q", "--config", str(tmp_path / "none.yaml"))
        assert exc_info.value.code == 1
        assert "Config file not found" in capsys.readouterr().err

    @pytest.mark.parametrize("option", ["--query", "--memory"])
    def test_blank_arguments_are_rejected(self, cli, capsys, retriever, option):
        argv = {"--memory": "docs", "--query": "q"}
        argv[option] = "  "
        with pytest.raises(SystemExit) as exc_info:
            cli("memory", "retrieve", *[part for pair in argv.items() for part in pair])
        assert exc_info.value.code == 2
        assert "must not be blank" in capsys.readouterr().err
        retriever.retrieve.assert_not_awaited()

    def test_request_validation_error_exits(self, cli, capsys, retriever):
        retriever.retrieve.side_effect = ValidationError.from_exception_data("MemoryRetrieveRequest", [])
        with pytest.raises(SystemExit) as exc_info:
            cli("memory", "retrieve", "--memory", "docs", "--query", "q")
        assert exc_info.value.code == 1
        assert "MemoryRetrieveRequest" in capsys.readouterr().err
