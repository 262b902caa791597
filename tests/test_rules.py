from core.rules import evaluate_loan_rules, has_blocking


def _codes(values):
    return {r.code for r in evaluate_loan_rules(values)}


def test_amount_over_loan_type_maximum():
    results = evaluate_loan_rules({"loanType": "emergency", "amount": 6_000_000})
    assert [r.code for r in results] == ["AMOUNT_EXCEEDS_MAX"]
    assert results[0].severity == "info"
    assert results[0].context["max_amount"] == 5_000_000


def test_amount_at_maximum_is_fine():
    assert _codes({"loanType": "emergency", "amount": "5000000"}) == set()


def test_poor_affordability():
    codes = _codes({"monthlyIncome": 1_000_000, "monthlyExpenses": 1_200_000})
    assert "POOR_AFFORDABILITY" in codes


def test_no_affordability_hint_before_figures_entered():
    assert _codes({"monthlyIncome": "", "monthlyExpenses": None}) == set()


def test_other_loans_outstanding():
    assert "OTHER_LOANS_OUTSTANDING" in _codes({"otherLoans": "250000"})
    assert "OTHER_LOANS_OUTSTANDING" not in _codes({"otherLoans": ""})


def test_loan_hints_never_block():
    results = evaluate_loan_rules(
        {"loanType": "personal", "amount": 20_000_000, "monthlyIncome": 10, "monthlyExpenses": 20, "otherLoans": 5}
    )
    assert len(results) == 3
    assert not has_blocking(results)
