#!/usr/bin/env python3
"""
Estimation de pension SPP (CNRACL) - point d'entree

This script runs the full estimate for one sapeur-pompier professionnel:
1. Load the regulatory parameters from params.py
2. Load the career profile (JSON file given on the command line, or the demo profile)
3. Resolve the key dates and evaluate every departure scenario
4. Display the pension breakdown and the scenario comparison
5. Save the scenarios as CSV and the full result as JSON

Usage: python main.py [profil.json] [--as-of YYYY-MM-DD]
"""

from __future__ import annotations
import argparse
import json
import sys
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from career import CareerProfile, profile_summary
from dates import format_date_fr, format_quarters, parse_date
from key_dates import ScenarioKind
from params import Params
from pension import decote_cost_per_quarter
from serialization import scenarios_frame, to_record
from simulation import SimulationResult, simulate

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('pension_spp.log'),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

DEMO_PROFILE: Dict[str, Any] = {
    "birth_date": "1983-05-02",
    "hire_date": "2004-01-01",
    "work_fraction": 1.0,
    "volunteer_years": 25,
    "indexed_grade": 526,
    "nbi_points": 16,
    "nbi_years": 30,
}


class PensionAnalyzer:
    """Runs and prints a complete SPP pension estimate"""

    def __init__(self, profile_path: Optional[str] = None, as_of: Optional[date] = None) -> None:
        self.profile_path = profile_path
        self.as_of = as_of or date.today()
        self.params: Optional[Params] = None
        self.profile: Optional[CareerProfile] = None
        self.result: Optional[SimulationResult] = None

    def load_parameters(self) -> bool:
        """Load the regulatory tables"""
        try:
            print("🔧 Chargement des parametres reglementaires...")
            self.params = Params()
            print(f"   📊 Version des baremes : {self.params.version}")
            print(f"   📊 Valeur du point : {self.params.point_value_monthly:.5f} €/mois")
            print(f"   📊 Taux plein : {self.params.full_rate:.0f} %")
            print(f"   📊 Minimum garanti : {self.params.guaranteed_minimum_monthly:,.2f} €/mois")
            return True

        except Exception as e:
            print(f"❌ Erreur lors du chargement des parametres : {e}")
            logger.error(f"Parameter loading failed: {e}")
            return False

    def load_profile(self) -> bool:
        """Read the profile JSON, or fall back to the demo profile"""
        try:
            if self.profile_path:
                print(f"\n👤 Lecture du profil {self.profile_path}...")
                with open(self.profile_path, encoding="utf-8") as fh:
                    data = json.load(fh)
            else:
                print("\n👤 Aucun profil fourni, utilisation du profil de demonstration...")
                data = DEMO_PROFILE

            assert self.params is not None
            self.profile = CareerProfile.from_dict(data)
            summary = profile_summary(self.profile, self.params, self.as_of)
            print(f"   ✅ Ne(e) le {format_date_fr(self.profile.birth_date)} (generation {summary['cohort']})")
            print(f"   ✅ Entree SPP le {format_date_fr(self.profile.hire_date)}")
            print(f"   ✅ Duree requise : {summary['required_quarters']} trimestres")
            return True

        except Exception as e:
            print(f"❌ Erreur lors de la lecture du profil : {e}")
            logger.error(f"Profile loading failed: {e}")
            return False

    def run_simulation(self) -> bool:
        """Evaluate every departure scenario"""
        try:
            assert self.profile is not None
            print(f"\n🎲 Calcul au {format_date_fr(self.as_of)}...")
            self.result = simulate(self.profile, self.as_of, self.params)

            for problem in self.result.problems:
                print(f"   ⚠️  {problem}")
            if self.result.key_dates is None:
                print("❌ Profil incomplet, aucun scenario calcule")
                return False

            print(f"   ✅ {len(self.result.scenarios)} scenarios calcules")
            return True

        except Exception as e:
            print(f"❌ Erreur lors du calcul : {e}")
            logger.error(f"Simulation failed: {e}")
            return False

    def display_results(self) -> None:
        """Print key dates, the full-rate breakdown and the scenario table"""
        try:
            result = self.result
            assert result is not None and result.key_dates is not None
            kd = result.key_dates

            print("\n" + "=" * 80)
            print("📋 ESTIMATION DE PENSION SPP - RESULTATS")
            print("=" * 80)
            print(f"🕐 Estimation realisee le {datetime.now().strftime('%d/%m/%Y a %H:%M:%S')}")

            print("\n📅 DATES CLES :")
            print(f"   Ouverture des droits : {format_date_fr(kd.opening_date)}")
            if not kd.early.eligible:
                print(f"   ⚠️  {kd.early.reason}")
            print(f"   Taux plein : {format_date_fr(kd.full_rate_date)}")
            print(f"   Annulation de la decote : {format_date_fr(kd.decote_cancellation_date)}")
            print(f"   Limite d'age : {format_date_fr(kd.age_limit_date)}")

            self._display_pension()
            self._display_scenarios()

            print("=" * 80)

        except Exception as e:
            print(f"❌ Erreur lors de l'affichage : {e}")
            logger.error(f"Result display failed: {e}")

    def _display_pension(self) -> None:
        result = self.result
        assert result is not None and result.pension is not None and result.duration is not None
        pension, duration = result.pension, result.duration
        assert self.params is not None

        print("\n💰 PENSION AU TAUX PLEIN :")
        print(f"   Trimestres liquidables : {duration.liquidable_quarters} "
              f"({format_quarters(duration.liquidable_quarters)})")
        print(f"   Dont bonification du cinquieme : {duration.fifth_bonus}")
        print(f"   Dont majoration SPV : {duration.volunteer_majoration}")
        print(f"   Traitement indiciaire : {pension.salary_monthly:,.2f} €/mois")
        print(f"   Taux de liquidation : {pension.net_rate:.2f} %")
        if pension.decote_quarters > 0:
            cost = decote_cost_per_quarter(pension.salary_annual, pension.gross_rate, self.params)
            print(f"   Decote : {pension.decote_quarters} trimestres ({cost:,.2f} €/mois par trimestre)")
        print(f"   Majoration prime de feu : {pension.hazard.monthly:,.2f} €/mois"
              + (f" (proratisee {pension.hazard.proration_rate:.2f} %)" if pension.hazard.prorated else ""))
        if pension.guaranteed_minimum_applied:
            print(f"   Minimum garanti applique : {pension.guaranteed_minimum_monthly:,.2f} €/mois")
        print(f"   Pension brute : {pension.gross_monthly:,.2f} €/mois")
        print(f"   Pension nette estimee : {pension.net_monthly:,.2f} €/mois")

        if result.nbi is not None and result.nbi.eligible:
            label = "integree au traitement" if result.nbi.integrated else f"{result.nbi.supplement_monthly:,.2f} €/mois"
            print(f"   NBI : {label}")
        if result.rafp is not None:
            if result.rafp.paid_as_capital:
                print(f"   RAFP : capital unique de {result.rafp.capital:,.2f} €")
            else:
                print(f"   RAFP : {result.rafp.annuity_monthly:,.2f} €/mois ({result.rafp.total_points} points)")
        if result.pfr_comparison is not None and result.pfr_comparison.pfr_monthly > 0:
            cmp = result.pfr_comparison
            print(f"   Prime de feu non integree : perte estimee {cmp.estimated_loss:,.2f} €/mois, "
                  f"taux de remplacement {cmp.replacement_rate:.1f} %")
        print(f"\n   🏦 TOTAL MENSUEL BRUT : {result.total_monthly:,.2f} €")

    def _display_scenarios(self) -> None:
        result = self.result
        assert result is not None
        print("\n🎯 SCENARIOS DE DEPART :")
        print(f"{'Scenario':<12} {'Date':<12} {'Age':<8} {'Taux':>8} {'Brut/mois':>12}  Description")
        print("-" * 80)
        for s in result.scenarios:
            print(f"{s.tag:<12} {format_date_fr(s.departure_date):<12} "
                  f"{s.age}a{s.age_months:02d}m  {s.pension.net_rate:>7.2f}% "
                  f"{s.pension.gross_monthly:>11,.2f}€  {s.description}")

        limit = result.scenario(ScenarioKind.AGE_LIMIT)
        if limit is not None and limit.surcote and limit.surcote_quarters > 0:
            print(f"\n   💡 Surcote possible a la limite d'age : {limit.surcote_quarters} trimestres")
        for analysis in result.break_even:
            if analysis.years_to_recover is not None:
                print(f"   💡 +{analysis.extra_years} an(s) : rentabilise en {analysis.years_to_recover} ans")

    def save_results(self, prefix: str = "simulation_spp") -> List[str]:
        """Write the scenario table (CSV) and the full result (JSON)"""
        saved = []
        try:
            assert self.result is not None
            csv_path = f"{prefix}.csv"
            scenarios_frame(self.result.scenarios).to_csv(csv_path, sep=";", index=False, encoding="utf-8")
            saved.append(csv_path)

            json_path = f"{prefix}.json"
            with open(json_path, "w", encoding="utf-8") as fh:
                json.dump(to_record(self.result), fh, ensure_ascii=False, indent=2)
            saved.append(json_path)

            print("\n📁 FICHIERS GENERES :")
            for path in saved:
                print(f"   📄 {path}")

        except Exception as e:
            print(f"❌ Erreur lors de l'export : {e}")
            logger.error(f"Export failed: {e}")
        return saved

    def run_complete_analysis(self) -> bool:
        """Run the complete estimate"""
        try:
            print("🚀 ESTIMATION DE PENSION SAPEUR-POMPIER PROFESSIONNEL")
            print("=" * 60)

            if not self.load_parameters():
                return False
            if not self.load_profile():
                return False
            if not self.run_simulation():
                return False

            self.display_results()
            self.save_results()

            print("\n🎉 ESTIMATION TERMINEE")
            print("   Estimation indicative, seule la CNRACL delivre un calcul officiel.")
            return True

        except Exception as e:
            print(f"\n❌ ERREUR CRITIQUE : {e}")
            logger.error(f"Complete analysis failed: {e}")
            return False


def _as_of_date(value: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"date invalide : {value!r} (AAAA-MM-JJ ou JJ/MM/AAAA)")
    return parsed


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Estimation de pension CNRACL pour sapeur-pompier professionnel",
    )
    parser.add_argument(
        "profile", nargs="?", default=None,
        help="Profil de carriere au format JSON (profil de demonstration sinon)",
    )
    parser.add_argument(
        "--as-of", dest="as_of", type=_as_of_date, default=None,
        help="Date d'evaluation (AAAA-MM-JJ ou JJ/MM/AAAA), aujourd'hui par defaut",
    )
    return parser.parse_args(argv)


def main():
    """Main entry point for the pension estimate"""
    try:
        args = parse_args(sys.argv[1:])
        analyzer = PensionAnalyzer(args.profile, args.as_of)

        success = analyzer.run_complete_analysis()

        sys.exit(0 if success else 1)

    except KeyboardInterrupt:
        print("\n\n⏹️  Estimation interrompue par l'utilisateur.")
        sys.exit(1)

    except Exception as e:
        print(f"\n❌ Erreur inattendue : {e}")
        logger.error(f"Unexpected error in main: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
