import pytest

from pension_planner.calculators.projection import calculate_retirement
from pension_planner.calculators.schedule import SCHEDULE_COLUMNS, savings_schedule


def _base_inputs():
    return {
        "currentAge": 40,
        "retirementAge": 60,
        "currentSavings": 100000,
        "currentTrainingFund": 40000,
        "personalPortfolio": 50000,
        "personalPortfolioReturn": 7,
        "personalPortfolioMonthly": 500,
        "currentCrypto": 5000,
        "cryptoReturn": 12,
        "realEstate": 400000,
        "realEstateReturn": 4,
        "riskTolerance": "aggressive",
    }


def _periods():
    return [
        {"country": "israel", "startAge": 40, "endAge": 50, "monthlyContribution": 2000,
         "pensionReturn": 6, "pensionDepositFee": 1, "monthlyTrainingFund": 800},
        {"country": "usa", "startAge": 50, "endAge": 60, "monthlyContribution": 2500, "pensionReturn": 5},
    ]


def test_last_row_matches_projection():
    frame = savings_schedule(_base_inputs(), _periods())
    result = calculate_retirement(_base_inputs(), _periods())
    last = frame.iloc[-1]
    assert last["age"] == 60
    assert last["pension"] == pytest.approx(result.total_pension_savings, rel=1e-9)
    assert last["training_fund"] == pytest.approx(result.training_fund_value, rel=1e-9)
    assert last["personal_portfolio"] == pytest.approx(result.personal_portfolio_value, rel=1e-9)
    assert last["crypto"] == pytest.approx(result.current_crypto, rel=1e-9)
    assert last["real_estate"] == pytest.approx(result.current_real_estate, rel=1e-9)
    assert last["total"] == pytest.approx(result.primary.total_savings, rel=1e-9)


def test_one_row_per_year():
    frame = savings_schedule(_base_inputs(), _periods())
    assert list(frame.columns) == SCHEDULE_COLUMNS
    assert len(frame) == 21
    assert frame["year"].tolist() == list(range(21))
    assert frame["contributions"].iloc[0] == 0
    assert (frame["total"].diff().dropna() > 0).all()


def test_first_row_is_today():
    frame = savings_schedule(_base_inputs(), _periods())
    first = frame.iloc[0]
    assert first["pension"] == pytest.approx(100000)
    # portfolio starts from the after-tax balance
    assert first["personal_portfolio"] == pytest.approx(50000 * 0.75)
    assert first["total_real"] == pytest.approx(first["total"])


def test_fractional_horizon_adds_final_row():
    inputs = _base_inputs()
    inputs["currentAge"] = 40.5
    frame = savings_schedule(inputs, _periods())
    assert len(frame) == 21
    assert frame["age"].iloc[-1] == pytest.approx(60)
    assert frame["year"].iloc[-2] == 19


def test_yearly_contributions():
    inputs = {"currentAge": 40, "retirementAge": 45, "monthlyContribution": 1000, "personalPortfolioMonthly": 200}
    frame = savings_schedule(inputs)
    assert frame["contributions"].iloc[1:].tolist() == pytest.approx([14400] * 5)


@pytest.mark.parametrize("retirement_age", [40, 30])
def test_empty_when_no_horizon(retirement_age):
    inputs = _base_inputs()
    inputs["retirementAge"] = retirement_age
    frame = savings_schedule(inputs, _periods())
    assert frame.empty
    assert list(frame.columns) == SCHEDULE_COLUMNS


def test_partner_columns():
    inputs = _base_inputs()
    inputs.update({"partnerPlanningEnabled": True, "partnerCurrentAge": 42, "partnerRetirementAge": 60,
                   "partnerCurrentSavings": 30000})
    partner_periods = [{"country": "israel", "startAge": 42, "endAge": 60, "monthlyContribution": 1000,
                        "pensionReturn": 5}]
    frame = savings_schedule(inputs, _periods(), partner_work_periods=partner_periods)
    assert {"partner_total", "combined_total", "combined_total_real"} <= set(frame.columns)
    assert frame["combined_total"].iloc[-1] == pytest.approx(
        frame["total"].iloc[-1] + frame["partner_total"].iloc[-1]
    )


def test_contributions_skip_unknown_country_periods():
    inputs = {"currentAge": 40, "retirementAge": 44}
    periods = [
        {"country": "israel", "startAge": 40, "endAge": 42, "monthlyContribution": 1000},
        {"country": "atlantis", "startAge": 42, "endAge": 44, "monthlyContribution": 5000},
    ]
    frame = savings_schedule(inputs, periods)
    assert frame["contributions"].iloc[1:].tolist() == pytest.approx([12000, 12000, 0, 0])
