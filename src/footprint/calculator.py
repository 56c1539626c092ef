"""
Emission Calculator

Converts daily activity quantities into CO2 estimates per category.

DESIGN: Pure and deterministic. Malformed input is sanitized to 0,
never rejected, so this module has no error conditions.
"""

from typing import List, Dict

from models.footprint import ActivityInput, EmissionCategory, EmissionCategoryResult


# kg CO2 per unit of activity
EMISSION_COEFFICIENTS = {
    "car": 0.21,          # per km
    "electricity": 0.43,  # per kWh
    "meat": 0.027,        # per gram
    "plastic": 0.1,       # per item
}


class EmissionCalculator:
    """
    Stateless emission calculator.

    USAGE:
        calculator = EmissionCalculator()
        results = calculator.calculate(ActivityInput(car_distance_km=12))
        total = calculator.get_total_emissions(results)
    """

    def __init__(self, coefficients: Dict[str, float] = None):
        self.coefficients = dict(coefficients or EMISSION_COEFFICIENTS)

    def category_amounts(self, activity: ActivityInput) -> Dict[EmissionCategory, float]:
        """Emission amount for every category, including zeros, in display order."""
        clean = activity.sanitized()
        return {
            EmissionCategory.TRANSPORTATION: clean.car_distance_km * self.coefficients["car"],
            EmissionCategory.ELECTRICITY: clean.electricity_kwh * self.coefficients["electricity"],
            EmissionCategory.FOOD: clean.meat_grams * self.coefficients["meat"],
            EmissionCategory.PLASTIC: clean.plastic_items * self.coefficients["plastic"],
        }

    def calculate(self, activity: ActivityInput) -> List[EmissionCategoryResult]:
        """
        Calculate categorized emissions.

        Args:
            activity: Raw activity quantities

        Returns:
            Results for categories with a positive amount, in fixed
            display order. Shares sum to 100 unless the total is 0.
        """
        amounts = self.category_amounts(activity)
        total = sum(amounts.values())

        results = [
            EmissionCategoryResult(
                category=category,
                amount_kg=amount,
                share_percent=(amount / total * 100) if total > 0 else 0.0,
            )
            for category, amount in amounts.items()
        ]
        return [r for r in results if r.amount_kg > 0]

    @staticmethod
    def get_total_emissions(results: List[EmissionCategoryResult]) -> float:
        """Sum of all category amounts."""
        return sum(r.amount_kg for r in results)

    @staticmethod
    def breakdown_from_results(results: List[EmissionCategoryResult]) -> Dict[str, float]:
        """Full breakdown dict (missing categories are 0) for a DailyRecord."""
        breakdown = {category.breakdown_key: 0.0 for category in EmissionCategory}
        for result in results:
            breakdown[result.category.breakdown_key] = result.amount_kg
        return breakdown
