"""Randomized case records used when no SIVEP-Gripe extract is available."""

import random
from datetime import date, timedelta
from typing import Iterator, Optional

from srag_dp.domain.domain import CaseRecord, Outcome, Sex

SAMPLE_STATES = ("SP", "RJ", "MG", "BA", "PR", "RS")
SAMPLE_MUNICIPALITIES = 100
SAMPLE_DAYS = 365


def generate_sample_cases(
    count: int,
    today: date,
    rng: Optional[random.Random] = None,
) -> Iterator[CaseRecord]:
    """
    Yield `count` synthetic cases notified within the last year.

    Args:
        count: Number of cases to generate
        today: Most recent notification date that may be generated
        rng: Random source, pass a seeded instance for reproducible data
    """
    rng = rng or random.Random()

    for _ in range(count):
        data_notificacao = today - timedelta(days=rng.randrange(SAMPLE_DAYS))
        doses = rng.randrange(4)

        yield CaseRecord(
            data_notificacao=data_notificacao,
            estado=rng.choice(SAMPLE_STATES),
            municipio=f"Município {rng.randrange(SAMPLE_MUNICIPALITIES)}",
            idade_paciente=rng.randint(1, 90),
            sexo_paciente=Sex.MALE.value if rng.random() > 0.5 else Sex.FEMALE.value,
            febre=rng.random() > 0.3,
            tosse=rng.random() > 0.4,
            dispneia=rng.random() > 0.6,
            saturacao=rng.random() > 0.7,
            hospitalizado=rng.random() > 0.5,
            uti_status=rng.random() > 0.7,
            vacinado=rng.random() > 0.4,
            doses_vacina=doses or None,
            evolucao_caso=Outcome.DEATH.value if rng.random() > 0.85 else Outcome.CURE.value,
        )
