from pathlib import Path
from typing import Dict, List

import pandas as pd

from gardener.engine import EngineResult
from gardener.results import PairingReport, PortfolioAllocation, StaminaRecommendation


def pools_frame(portfolio: PortfolioAllocation) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                'pool_id': pool.pool_id,
                'pool_name': pool.pool_name,
                'lp_share': pool.lp_share,
                'what_if': pool.what_if,
                'pairs': len(pool.pairs),
                'primary_per_day': pool.primary_per_day,
                'secondary_per_day': pool.secondary_per_day,
                'usd_per_day': pool.usd_per_day,
                'total_runs_per_day': pool.total_runs_per_day,
                'position_usd': pool.position_usd,
                'apr': pool.apr,
            }
            for pool in portfolio.pools
        ],
        columns=['pool_id', 'pool_name', 'lp_share', 'what_if', 'pairs', 'primary_per_day', 'secondary_per_day',
                 'usd_per_day', 'total_runs_per_day', 'position_usd', 'apr'],
    )


def pairs_frame(portfolio: PortfolioAllocation) -> pd.DataFrame:
    rows = []
    for pool in portfolio.pools:
        for pair in pool.pairs:
            pets = {slot.hero_id: slot.pet_id for slot in pair.slots}
            rows.append({
                'pool_id': pool.pool_id,
                'primary_hero_id': pair.pairing.primary_hero_id,
                'primary_pet_id': pets.get(pair.pairing.primary_hero_id),
                'secondary_hero_id': pair.pairing.secondary_hero_id,
                'secondary_pet_id': pets.get(pair.pairing.secondary_hero_id),
                'attempts': pair.pairing.attempts,
                'runs_per_day': pair.runs_per_day,
                'gating': pair.gating,
                'primary_per_day': pair.primary_per_day,
                'secondary_per_day': pair.secondary_per_day,
                'usd_per_day': pair.usd_per_day,
                'source': pair.pairing.source.value,
            })
    return pd.DataFrame(rows, columns=[
        'pool_id', 'primary_hero_id', 'primary_pet_id', 'secondary_hero_id', 'secondary_pet_id', 'attempts',
        'runs_per_day', 'gating', 'primary_per_day', 'secondary_per_day', 'usd_per_day', 'source'])


def pairings_frame(report: PairingReport) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                'pool_id': pairing.pool_id,
                'hero_ids': ";".join(str(hero_id) for hero_id in pairing.hero_ids),
                'primary_hero_id': pairing.primary_hero_id,
                'secondary_hero_id': pairing.secondary_hero_id,
                'attempts': pairing.attempts,
                'iteration_time_seconds': pairing.iteration_time_seconds,
                'source': pairing.source.value,
                'confidence': pairing.source.confidence,
                'role_source': pairing.role_source.value,
            }
            for pairing in report.pairings
        ],
        columns=['pool_id', 'hero_ids', 'primary_hero_id', 'secondary_hero_id', 'attempts',
                 'iteration_time_seconds', 'source', 'confidence', 'role_source'],
    )


def recommendations_frame(recommendations: List[StaminaRecommendation]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                'hero_ids': ";".join(str(hero_id) for hero_id in rec.hero_ids),
                'attempts': rec.attempts,
                'runs_per_day': rec.runs_per_day,
                'iteration_minutes': rec.iteration_minutes,
                'gating': rec.gating,
                'stamina_per_day': rec.stamina_per_day,
            }
            for rec in recommendations
        ],
        columns=['hero_ids', 'attempts', 'runs_per_day', 'iteration_minutes', 'gating', 'stamina_per_day'],
    )


def result_frames(result: EngineResult) -> Dict[str, pd.DataFrame]:
    return {
        'allocation_pools': pools_frame(result.portfolio),
        'allocation_pairs': pairs_frame(result.portfolio),
        'current_pools': pools_frame(result.current),
        'current_pairings': pairings_frame(result.pairing_report),
        'recommendations': recommendations_frame(result.recommendations),
        'diagnostics': pd.DataFrame(
            [{'kind': d.kind.value, 'subject': d.subject, 'message': d.message} for d in result.diagnostics],
            columns=['kind', 'subject', 'message']),
    }


def write_frames(result: EngineResult, output_dir: str | Path) -> List[Path]:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, df in result_frames(result).items():
        path = output_dir / f"{name}.csv"
        df.to_csv(path, index=False)
        written.append(path)
    return written


def summary_text(result: EngineResult) -> str:
    portfolio = result.portfolio
    lines = [f"Wallet {portfolio.wallet}"]
    for pool in portfolio.pools:
        tag = " (what-if)" if pool.what_if else ""
        lines.append(f"  {pool.pool_name}{tag}: {len(pool.pairs)} pairs, "
                     f"{pool.primary_per_day:.4f} primary + {pool.secondary_per_day:.4f} secondary/day, "
                     f"${pool.usd_per_day:.2f}/day, APR {pool.apr:.2f}%")
        for pair in pool.pairs:
            lines.append(f"    #{pair.pairing.primary_hero_id} (primary) + #{pair.pairing.secondary_hero_id} "
                         f"(secondary), {pair.pairing.attempts} stamina, {pair.runs_per_day:.2f} runs/day")
    lines.append(f"  Total: {portfolio.primary_per_day:.4f} primary + {portfolio.secondary_per_day:.4f} secondary/day")
    lines.append(f"  USD: ${portfolio.usd_per_day:.2f}/day, ${portfolio.weekly_usd:.2f}/week, "
                 f"${portfolio.monthly_usd:.2f}/month")
    lines.append(f"  Heroes used: {portfolio.heroes_used}, pets used: {portfolio.pets_used}, "
                 f"unassigned: {len(portfolio.unassigned_hero_ids)}")

    report = result.pairing_report
    source = report.source.value if report.source else "none"
    lines.append(f"Current pairs: {len(report.pairings)} via {source} "
                 f"({report.verified_roles} verified roles, {report.heuristic_roles} heuristic)")
    if result.improvement is not None:
        lines.append(f"Improvement over current: {result.improvement.percentage:+.1f}%")
    for suggestion in result.fast_regen_suggestions:
        lines.append(f"Fast regen: hero #{suggestion.hero_id}, +{suggestion.improvement_pct:.1f}% runs/day")
    if result.validation.result == 'fail':
        lines.append(f"Validation failed: {result.validation.feedback}")
    for diagnostic in result.diagnostics:
        lines.append(f"[{diagnostic.kind.value}] {diagnostic.message}")
    return "\n".join(lines)
