"""
Harmonized output table.

A HarmonizedTable keeps native values and missing-value tags apart:

    values   DataFrame of native values (None where the cell is missing)
    tags     DataFrame of reason codes "a".."e" (None where the cell is present)
    origin   Series naming the cycle each row came from

Every cell is therefore either a Present value or a Missing value with a
reason. The only other state, an unset cell (value and tag both null),
exists transiently after concatenating tables from different cycles and
is removed by merge.retag_not_collected().

Tables are never modified in place; every operation returns a new table.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pandas as pd

from cchs_harmonizer.tagged import Missing, Present, Reason, TaggedValue, as_tagged, is_null

logger = logging.getLogger(__name__)

ORIGIN_COLUMN = "cycle"


def _object_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Object dtype with None (not NaN) in every null cell."""
    data = frame.astype(object).to_numpy(copy=True)
    data[pd.isna(data)] = None
    return pd.DataFrame(data, index=frame.index, columns=frame.columns, dtype=object)


def _split(column: Sequence[Any]):
    values, tags = [], []
    for cell in column:
        tagged = as_tagged(cell)
        if isinstance(tagged, Missing):
            values.append(None)
            tags.append(tagged.reason.value)
        else:
            values.append(tagged.value)
            tags.append(None)
    return values, tags


@dataclass(frozen=True, eq=False)
class HarmonizedTable:
    """
    Respondent rows x target-variable columns of tagged values.

    Properties:
        values: native values frame
        tags: reason-code frame with the same shape, index and columns
        origin: cycle of each row
    """

    values: pd.DataFrame
    tags: pd.DataFrame
    origin: pd.Series

    @classmethod
    def from_columns(
        cls,
        columns: Mapping[str, Sequence[Any]],
        cycle: Union[str, Sequence[str]],
        length: Optional[int] = None,
    ) -> "HarmonizedTable":
        """
        Build a table from columns of TaggedValues.

        Args:
            columns: name -> one value per row (raw values are lifted
                with as_tagged, so NaN becomes NA(b))
            cycle: origin cycle for every row, or one per row
            length: row count, needed only when there are no columns
        """
        if length is None:
            lengths = {len(c) for c in columns.values()}
            if len(lengths) > 1:
                raise ValueError(f"Columns have different lengths: {sorted(lengths)}")
            length = lengths.pop() if lengths else 0

        values: Dict[str, List[Any]] = {}
        tags: Dict[str, List[Any]] = {}
        for name, column in columns.items():
            if len(column) != length:
                raise ValueError(f"Column {name} has {len(column)} rows, expected {length}")
            values[name], tags[name] = _split(column)

        index = pd.RangeIndex(length)
        origin = [cycle] * length if isinstance(cycle, str) else list(cycle)
        return cls(
            values=pd.DataFrame(values, index=index, dtype=object),
            tags=pd.DataFrame(tags, index=index, dtype=object),
            origin=pd.Series(origin, index=index, dtype=object, name=ORIGIN_COLUMN),
        )

    @classmethod
    def from_rendered(
        cls,
        frame: pd.DataFrame,
        cycle: Optional[Union[str, Sequence[str]]] = None,
    ) -> "HarmonizedTable":
        """
        Rebuild a table from its rendered form.

        "NA(x)" text becomes Missing; null cells stay unset so a later merge
        can retag them. The origin is taken from `cycle`, or from the
        rendered origin column when `cycle` is None.
        """
        frame = frame.reset_index(drop=True)
        if cycle is None:
            if ORIGIN_COLUMN not in frame.columns:
                raise ValueError(f"No cycle given and no {ORIGIN_COLUMN!r} column to read it from")
            cycle = frame[ORIGIN_COLUMN].tolist()
        frame = frame.drop(columns=[ORIGIN_COLUMN], errors="ignore")

        values: Dict[str, List[Any]] = {}
        tags: Dict[str, List[Any]] = {}
        for name in frame.columns:
            values[name], tags[name] = [], []
            for cell in frame[name].tolist():
                missing = Missing.from_label(cell) if isinstance(cell, str) else None
                if missing is not None:
                    values[name].append(None)
                    tags[name].append(missing.reason.value)
                elif is_null(cell):
                    values[name].append(None)
                    tags[name].append(None)
                else:
                    values[name].append(cell)
                    tags[name].append(None)

        index = pd.RangeIndex(len(frame))
        origin = [cycle] * len(frame) if isinstance(cycle, str) else list(cycle)
        return cls(
            values=pd.DataFrame(values, index=index, columns=list(frame.columns), dtype=object),
            tags=pd.DataFrame(tags, index=index, columns=list(frame.columns), dtype=object),
            origin=pd.Series(origin, index=index, dtype=object, name=ORIGIN_COLUMN),
        )

    @classmethod
    def concat(cls, tables: Sequence["HarmonizedTable"]) -> "HarmonizedTable":
        """
        Stack tables row-wise over the union of their columns.

        Cells of a column the row's own table did not have are left unset.
        """
        if not tables:
            return cls.from_columns({}, cycle=[], length=0)
        values = pd.concat([t.values for t in tables], ignore_index=True, sort=False)
        tags = pd.concat([t.tags for t in tables], ignore_index=True, sort=False)
        origin = pd.concat([t.origin for t in tables], ignore_index=True)
        return cls(values=_object_frame(values), tags=_object_frame(tags[values.columns]), origin=origin)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def columns(self) -> List[str]:
        return list(self.values.columns)

    def cell(self, row: int, column: str) -> Optional[TaggedValue]:
        """
        One cell as a TaggedValue.

        Returns None only for an unset cell (see module docs).

        Raises:
            KeyError: if the column does not exist
        """
        tag = self.tags.at[row, column]
        if not is_null(tag):
            return Missing(Reason(tag))
        value = self.values.at[row, column]
        if is_null(value):
            return None
        return Present(value)

    def column(self, name: str) -> List[Optional[TaggedValue]]:
        if name not in self.values.columns:
            raise KeyError(name)
        return [self.cell(i, name) for i in range(len(self))]

    def unset_mask(self) -> pd.DataFrame:
        """True where a cell has neither a value nor a tag."""
        return self.values.isna() & self.tags.isna()

    def with_tags(self, tags: pd.DataFrame) -> "HarmonizedTable":
        return HarmonizedTable(values=self.values, tags=_object_frame(tags), origin=self.origin)

    def render(self, include_origin: bool = False) -> pd.DataFrame:
        """
        Output form: native values, with missing cells as their NA(x) label.

        Args:
            include_origin: add the row's cycle as a leading column
        """
        labels = pd.DataFrame(
            {name: [None if is_null(t) else f"NA({t})" for t in self.tags[name].tolist()] for name in self.tags.columns},
            index=self.tags.index,
            columns=self.tags.columns,
            dtype=object,
        )
        rendered = self.values.where(self.tags.isna(), labels)
        if include_origin:
            rendered.insert(0, ORIGIN_COLUMN, self.origin.values)
        return rendered

    def tag_counts(self) -> Dict[str, Dict[str, int]]:
        """
        Missing-value counts: column -> {"NA(x)": count}.

        Counts are summed cell by cell, so tables can be counted in any
        order or in pieces and added together.
        """
        counts: Dict[str, Dict[str, int]] = {}
        for name in self.tags.columns:
            tally = Counter(f"NA({t})" for t in self.tags[name].tolist() if not is_null(t))
            counts[name] = dict(sorted(tally.items()))
        return counts

    def summary(self) -> str:
        cycles = ", ".join(dict.fromkeys(self.origin.tolist()))
        return f"{len(self)} rows x {len(self.columns)} targets ({cycles})"
