from typing import Any

from hypothesis import given, strategies as st

from vigil.config import deep_merge

keys = st.sampled_from(["watchdog", "deploy", "logging", "level", "shell", "targets"])
scalars = st.one_of(st.integers(), st.booleans(), st.text(max_size=5))
configs = st.recursive(
    scalars,
    lambda children: st.dictionaries(keys, children, max_size=4),
    max_leaves=12,
).filter(lambda value: isinstance(value, dict))


def leaves(data: dict[str, Any], prefix: tuple[str, ...] = ()) -> dict[tuple[str, ...], Any]:
    result: dict[tuple[str, ...], Any] = {}
    for key, value in data.items():
        if isinstance(value, dict) and value:
            result.update(leaves(value, (*prefix, key)))
        else:
            result[(*prefix, key)] = value
    return result


@given(base=configs, override=configs)
def test_override_leaves_always_win(base: dict[str, Any], override: dict[str, Any]) -> None:
    merged = leaves(deep_merge(base, override))

    for path, value in leaves(override).items():
        if value == {}:
            # An empty table overrides nothing
            continue
        assert merged[path] == value


@given(base=configs)
def test_merging_empty_override_is_identity(base: dict[str, Any]) -> None:
    assert deep_merge(base, {}) == base
    assert deep_merge({}, base) == base
