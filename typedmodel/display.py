#  -*- coding: utf-8 -*-
"""
Rich terminal display of types and instances.

``SchemaDisplay`` renders the property table of a model type and
``InstanceDisplay`` renders the field values of a model instance. Both are
``Displayable``: they print through rich (``__rich__``), render to ANSI text
(``str()``) and export to HTML or SVG. Styling comes from ``DisplaySettings``,
which is itself a model type declared with this engine.

Examples
--------
>>> from rich import print
>>> print(describe(Person))
>>> print(describe(Person.wrap({'name': 'John'})))
>>> to_frame(people)
"""

from __future__ import annotations

import pandas

from abc import ABC, abstractmethod

from io import StringIO

from rich.markup import escape
from rich.text import Text
from rich.panel import Panel
from rich.console import Console, RenderableType
from rich.table import Table
from rich import box
from rich.align import Align

from typedmodel.model import Model, clean, is_model, stringify
from typedmodel.properties import PropertyDescriptor

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any, Iterable, Type


# ========== ========== ========== ========== ========== ==========
class DisplaySettings(Model):
    """
    Styling of terminal output.

    Every field uses rich's style syntax (colors, ``bold``, ``italic``, ...).
    Missing fields are filled with ``DisplaySettings.defaults`` when an
    instance is created, so a partial record is a valid theme::

        settings = DisplaySettings({'panel_border_style': 'green'})
        describe(Person, settings)

    Attributes
    ----------
    console_width : int
        Maximum console output width in characters.
    property_style : str
        Style of field labels in forms.
    panel_border_style : str
        Style of panel borders.
    panel_box : str
        Box style name from ``rich.box``.
    panel_title_align : str
        Panel title alignment.
    table_header_style : str
        Style of table headers.
    table_spacing : int
        Column spacing in characters.
    """

    properties = {
        'console_width': {'type': int, 'doc': "Maximum console output width in characters."},
        'property_style': {'type': str, 'doc': "Style of field labels in forms."},
        'panel_border_style': {'type': str, 'doc': "Style of panel borders."},
        'panel_box': {'type': str, 'doc': "Box style name from rich.box."},
        'panel_title_align': {'type': str, 'doc': "Panel title alignment."},
        'table_header_style': {'type': str, 'doc': "Style of table headers."},
        'table_spacing': {'type': int, 'doc': "Column spacing in characters."},
    }

    defaults = {
        'console_width': 150,
        'property_style': 'bold bright_yellow',
        'panel_border_style': 'bright_cyan',
        'panel_box': 'ROUNDED',
        'panel_title_align': 'center',
        'table_header_style': 'bold bright_yellow',
        'table_spacing': 4,
    }

    def init(self, data: dict, options: Any) -> None:
        for name, value in self.defaults.items():
            if data.get(name) is None:
                self.set(name, value)


# ========== ========== ========== ========== ========== ==========
class Displayable(ABC):
    """
    Base of objects rendered as a titled rich panel.

    Subclasses implement ``_title`` and ``_content``; everything else
    (``__str__``, ``__rich__``, HTML and SVG export) is derived from them.

    Parameters
    ----------
    settings : DisplaySettings, optional
        Styling. A default ``DisplaySettings`` is created when omitted.
    """

    def __init__(self, settings: DisplaySettings | None = None) -> None:
        self.display_settings: DisplaySettings = settings if settings is not None else DisplaySettings()

    # ========== ========== ========== ========== ========== special methods
    def __str__(self) -> str:
        string_io = StringIO()
        console = Console(file=string_io,
                          force_terminal=True,
                          width=self.display_settings.console_width)

        console.print(self._display_panel())

        return string_io.getvalue()

    def __rich__(self) -> RenderableType:
        return self._display_panel()

    # ========== ========== ========== ========== ========== protected methods
    @abstractmethod
    def _title(self) -> Text:
        ...

    @abstractmethod
    def _content(self) -> RenderableType:
        ...

    def _display_panel(self) -> Panel:
        return Panel(
            self._content(),
            title=self._title(),
            border_style=self.display_settings.panel_border_style,
            title_align=self.display_settings.panel_title_align,
            expand=False,
            box=getattr(box, self.display_settings.panel_box)
        )

    # ========== ========== ========== ========== ========== public methods
    def format_as_form(self, data: dict[str, Any]) -> Table:
        """
        Format ``data`` as a two-column label/value grid.

        Labels get ``':'`` appended and use ``property_style``.
        """
        form = Table.grid(padding=(0, 4), expand=False)
        form.add_column(justify='left', style=self.display_settings.property_style)
        form.add_column(justify='left', style=None)

        for label, value in data.items():
            form.add_row(f'{label}:', value)

        return form

    def format_as_table(self, frame: pandas.DataFrame, max_rows: int = 31) -> Table:
        """
        Format ``frame`` as a grid with a styled header row.

        Numeric columns are right-aligned, other columns left-aligned. Frames
        longer than ``max_rows`` show their head and tail around an ellipsis
        row.
        """
        table = Table.grid(padding=(0, self.display_settings.table_spacing), expand=False)

        for column in frame.columns:
            if pandas.api.types.is_numeric_dtype(frame[column]) and not pandas.api.types.is_bool_dtype(frame[column]):
                table.add_column(justify='right')
            else:
                table.add_column(justify='left')

        table.add_row(*(Align(escape(str(column)), 'center') for column in frame.columns),
                      style=self.display_settings.table_header_style)

        # missing cells render empty
        text = frame.astype(object).where(frame.notna(), '')

        if len(text) <= max_rows:
            for _, row in text.iterrows():
                table.add_row(*(escape(str(value)) for value in row.values))

        else:
            n_rows = (max_rows - 1) // 2

            for _, row in text.head(n_rows).iterrows():
                table.add_row(*(escape(str(value)) for value in row.values))

            table.add_row(*(Align.center('...') for _ in frame.columns))

            for _, row in text.tail(n_rows).iterrows():
                table.add_row(*(escape(str(value)) for value in row.values))

        return table

    def to_html(self) -> str:
        console = Console(record=True, width=self.display_settings.console_width)
        console.print(self)
        return console.export_html()

    def to_svg(self) -> str:
        console = Console(record=True, width=self.display_settings.console_width)
        console.print(self)
        return console.export_svg()


# ========== ========== ========== ========== ========== ==========
def type_label(descriptor: PropertyDescriptor) -> str:
    """Readable type of a field, e.g. ``'Person[]'`` for an array of persons."""
    if descriptor.items is not None:
        return f'{type_label(descriptor.items)}[]'

    return descriptor.type.__name__


class SchemaDisplay(Displayable):
    """
    Property table of a model type.

    One row per effective descriptor (most derived level first) with its
    storage key, type, persistence and generated accessors.
    """

    def __init__(self, type_: Type[Model], settings: DisplaySettings | None = None) -> None:
        super().__init__(settings)
        self.type: Type[Model] = type_

    def _title(self) -> Text:
        return Text(self.type.__name__, style='bold')

    def _content(self) -> RenderableType:
        if not self.type.has_properties():
            return Text('no declared properties', style='dim')

        return self.format_as_table(self.frame())

    def frame(self) -> pandas.DataFrame:
        rows = [
            {
                'name': descriptor.name,
                'key': descriptor.storage_key,
                'type': type_label(descriptor),
                'persisted': descriptor.persisted,
                'get': descriptor.readable,
                'set': descriptor.writable,
            }
            for descriptor in self.type.iter_properties()
        ]

        return pandas.DataFrame(rows, columns=['name', 'key', 'type', 'persisted', 'get', 'set'])


class InstanceDisplay(Displayable):
    """Current field values of a model instance, as a form."""

    def __init__(self, model: Model, settings: DisplaySettings | None = None) -> None:
        super().__init__(settings)
        self.model: Model = model

    def _title(self) -> Text:
        return Text(type(self.model).__name__, style='bold')

    def _content(self) -> RenderableType:
        cls = type(self.model)

        if not cls.has_properties():
            return Text(escape(stringify(self.model, pretty=True)))

        form = {}
        for descriptor in cls.iter_properties():
            value = clean(self.model.get(descriptor.name))

            if value is None:
                form[descriptor.name] = Text('None', style='dim')
            else:
                form[descriptor.name] = escape(str(value))

        return self.format_as_form(form)


def describe(obj: Model | Type[Model], settings: DisplaySettings | None = None) -> Displayable:
    """Return the display of a model type or of a model instance."""
    if isinstance(obj, type):
        return SchemaDisplay(obj, settings)

    if is_model(obj):
        return InstanceDisplay(obj, settings)

    raise TypeError(f"Expected a model type or instance, got {type(obj).__name__}")


def to_frame(instances: Iterable[Any], type_: Type[Model] | None = None) -> pandas.DataFrame:
    """
    Tabulate the clean records of ``instances``.

    Parameters
    ----------
    instances : iterable
        Model instances or raw records.
    type_ : type, optional
        Type whose persisted fields give the columns, in property order.
        Defaults to the type of the first model instance. Without a type the
        columns are the union of the record keys.

    Returns
    -------
    pandas.DataFrame
        One row per instance.
    """
    instances = list(instances)

    if type_ is None and instances and is_model(instances[0]):
        type_ = type(instances[0])

    records = [clean(type_.wrap(instance) if type_ is not None else instance) for instance in instances]

    columns = None
    if type_ is not None and type_.has_properties():
        columns = [descriptor.storage_key for descriptor in type_.iter_properties() if descriptor.persisted]

    return pandas.DataFrame.from_records(records, columns=columns)
