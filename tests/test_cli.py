"""
Tests for cli/main.py (Typer CliRunner, captured bodies on disk).
"""
import json

import pytest
from typer.testing import CliRunner

from cli.main import app, load_response

runner = CliRunner()


@pytest.fixture
def plans_file(tmp_path, plans_payload):
    path = tmp_path / "plans.json"
    path.write_text(json.dumps(plans_payload), encoding="utf-8")
    return path


@pytest.fixture
def customer_file(tmp_path, customer_payload):
    path = tmp_path / "customer.json"
    path.write_text(json.dumps(customer_payload), encoding="utf-8")
    return path


@pytest.fixture
def error_file(tmp_path):
    path = tmp_path / "error.xml"
    path.write_text(
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<error id="1" code="404" auxCode="planCode:NotFound">Plan not found</error>\n',
        encoding="utf-8",
    )
    return path


def test_load_response_json(plans_file):
    response = load_response(plans_file)
    assert response.valid
    assert len(response.plans) == 2


def test_load_response_xml(tmp_path):
    path = tmp_path / "plans.xml"
    path.write_text('<plans><plan code="A"><trialDays>7</trialDays></plan></plans>', encoding="utf-8")
    response = load_response(path, xml=True)
    assert response.plan() == {"code": "A", "trialDays": 7}


def test_inspect_valid(plans_file):
    result = runner.invoke(app, ["inspect", str(plans_file)])
    assert result.exit_code == 0
    assert "VALID" in result.output
    assert "INVALID" not in result.output
    assert "BASIC" in result.output


def test_inspect_error_body(error_file):
    result = runner.invoke(app, ["inspect", str(error_file), "--status", "404"])
    assert result.exit_code == 0
    assert "INVALID" in result.output
    assert "planCode" in result.output


def test_plan_ambiguous_exits_with_usage_error(plans_file):
    result = runner.invoke(app, ["plan", str(plans_file)])
    assert result.exit_code == 2
    assert "code is required" in result.output


def test_plan_by_code(plans_file):
    result = runner.invoke(app, ["plan", str(plans_file), "--code", "PRO"])
    assert result.exit_code == 0
    assert "STORAGE" in result.output


def test_customer_with_item_metrics(customer_file):
    result = runner.invoke(app, ["customer", str(customer_file), "--item", "SEATS"])
    assert result.exit_code == 0
    assert "alice" in result.output
    assert "Overage cost" in result.output
    assert "50" in result.output


def test_customer_missing_collection(plans_file):
    result = runner.invoke(app, ["customer", str(plans_file)])
    assert result.exit_code == 2
    assert "does not contain customers" in result.output


def test_fetch_without_product_code(monkeypatch):
    monkeypatch.setenv("BILLING_PRODUCT_CODE", "")
    result = runner.invoke(app, ["fetch", "plans"])
    assert result.exit_code == 2
    assert "product_code" in result.output


def test_doctor_offline(monkeypatch):
    monkeypatch.setenv("BILLING_PRODUCT_CODE", "ACME")
    result = runner.invoke(app, ["doctor", "run", "--offline"])
    assert result.exit_code == 0
    assert "ACME" in result.output


def test_inspect_writes_canonical_tree(customer_file, tmp_path):
    output = tmp_path / "out" / "tree.json"
    result = runner.invoke(app, ["inspect", str(customer_file), "--output", str(output)])
    assert result.exit_code == 0
    tree = json.loads(output.read_text(encoding="utf-8"))
    subscription = tree["customers"][0]["subscriptions"][0]
    assert subscription["invoices"][0]["billingDatetime"] == "2024-07-01T00:00:00+00:00"
    assert subscription["plans"][0]["isActive"] is True
    assert tree["errors"] == []
