"""
Health plan codes accepted from clients.

Clients submit plans as numeric codes (``[1, 3]``); records store the
canonical plan names (``["Unimed", "Amil"]``).
"""
from __future__ import annotations

from enum import Enum

from clinica.exceptions import AppError, Status


class HealthPlan(Enum):
    SULAMERICA = 'Sulamerica'
    UNIMED = 'Unimed'
    BRADESCO = 'Bradesco'
    AMIL = 'Amil'
    BIOSAUDE = 'Biosaude'
    BIOVIDA = 'Biovida'
    OUTRO = 'Outro'


PLAN_CODES: dict[int, HealthPlan] = dict(enumerate(HealthPlan))
PLAN_NAMES = {plan.value for plan in HealthPlan}


def map_plans(plans) -> list[str]:
    """Translate plan codes into canonical plan names.

    Names that are already canonical pass through unchanged so that a
    record read back from the API can be submitted again.  Duplicates
    are dropped, first occurrence wins.
    """
    names: list[str] = []
    for plan in plans:
        if isinstance(plan, str) and plan in PLAN_NAMES:
            name = plan
        else:
            try:
                name = PLAN_CODES[int(plan)].value
            except (KeyError, TypeError, ValueError):
                raise AppError(f'Plano de saúde inválido: {plan}', Status.BAD_REQUEST)
        if name not in names:
            names.append(name)
    return names
