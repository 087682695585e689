import pandas as pd
import pytest

from churn_tree.encoder import CategoryEncoder
from churn_tree.exceptions import DataSchemaError, UnknownCategoryError


def _df():
    return pd.DataFrame(
        {
            "Plan": ["Standard", "Basic", "Premium", "Basic"],
            "Device": ["Tablet", "Mobile", "Mobile", "Desktop"],
            "Fee": [14.99, 9.99, 19.99, 9.99],
            "Cancelled": [True, False, False, True],
        }
    )


def _encoder():
    return CategoryEncoder(["Plan", "Device"], label_column="Cancelled", positive_label=True)


def test_codes_follow_sorted_string_order():
    enc = _encoder().fit(_df())
    assert enc.mappings["Plan"] == {"Basic": 0, "Premium": 1, "Standard": 2}
    assert enc.mappings["Device"] == {"Desktop": 0, "Mobile": 1, "Tablet": 2}


def test_label_positive_value_maps_to_one():
    out = _encoder().fit_transform(_df())
    assert out["Cancelled"].tolist() == [1, 0, 0, 1]
    assert out["Plan"].tolist() == [2, 0, 1, 0]


def test_non_categorical_columns_pass_through():
    out = _encoder().fit_transform(_df())
    pd.testing.assert_series_equal(out["Fee"], _df()["Fee"])


def test_string_labels_with_explicit_positive_value():
    df = _df().assign(Cancelled=["yes", "no", "no", "yes"])
    enc = CategoryEncoder(["Plan"], label_column="Cancelled", positive_label="yes")
    out = enc.fit_transform(df)
    assert enc.label_mapping == {"no": 0, "yes": 1}
    assert enc.inverse_transform_label(out["Cancelled"]) == ["yes", "no", "no", "yes"]


def test_unknown_category_raises_with_context():
    enc = _encoder().fit(_df())
    batch = _df()
    batch.loc[2, "Plan"] = "Enterprise"

    with pytest.raises(UnknownCategoryError) as info:
        enc.transform(batch)

    assert info.value.column == "Plan"
    assert info.value.value == "Enterprise"


def test_transform_before_fit_raises():
    with pytest.raises(RuntimeError, match="fit"):
        _encoder().transform(_df())


def test_label_must_have_two_values_including_positive():
    df = _df().assign(Cancelled=[False, False, False, False])
    with pytest.raises(DataSchemaError):
        _encoder().fit(df)


def test_exported_mappings_encode_new_batches_identically():
    enc = _encoder().fit(_df())
    restored = CategoryEncoder.from_dict(enc.to_dict())

    batch = _df().iloc[[3, 0]]
    pd.testing.assert_frame_equal(restored.transform(batch), enc.transform(batch))


def test_encoder_does_not_mutate_input():
    df = _df()
    before = df.copy(deep=True)
    _encoder().fit_transform(df)
    pd.testing.assert_frame_equal(df, before)
