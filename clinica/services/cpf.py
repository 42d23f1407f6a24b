"""CPF (Cadastro de Pessoas Físicas) normalisation and checksum validation."""
import re

_NON_DIGITS = re.compile(r'\D')


def normalize_cpf(value) -> str:
    """Strip punctuation such as ``111.444.777-35`` down to its digits."""
    if value is None:
        return ''
    return _NON_DIGITS.sub('', str(value))


def _check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    rest = (total * 10) % 11
    return 0 if rest == 10 else rest


def is_valid_cpf(value) -> bool:
    cpf = normalize_cpf(value)
    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False
    first = _check_digit(cpf[:9])
    second = _check_digit(cpf[:9] + str(first))
    return cpf[-2:] == f'{first}{second}'


def complete_cpf(base: str) -> str:
    """Append both check digits to a nine digit CPF base."""
    base = normalize_cpf(base)
    if len(base) != 9:
        raise ValueError('CPF base must have 9 digits')
    first = _check_digit(base)
    return f'{base}{first}{_check_digit(base + str(first))}'
