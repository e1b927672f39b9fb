"""Waterfall workbook renderer.

One sheet per view of a scenario: headline summary, tier-by-tier waterfall,
investor classes and (when a sensitivity sweep is configured) the carry
curve and break-even points. Inputs are blue, calculations black; row totals
and multiples are written as Excel formulas so the sheet stays live when an
amount is edited.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, Border, Side, Alignment, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from waterfall_domain.blocks import (
    BlockContext,
    BlockExecutor,
    ReturnsBlock,
    SensitivityBlock,
    WaterfallBlock,
)
from waterfall_domain.engine.constants import EPSILON
from waterfall_domain.schemas import WaterfallDistributionResult, WaterfallWorkbookCFG

logger = logging.getLogger(__name__)

MONEY_FORMAT = '$#,##0'
PERCENT_FORMAT = '0.00%'
MULTIPLE_FORMAT = '0.00"x"'

TIER_HEADERS = ["Order", "Tier", "Type", "GP Share", "LP Share", "Total", "Remaining After"]
CLASS_HEADERS = ["Investor Class", "Type", "Invested", "Returned", "Net Return", "MOIC", "Carry"]
SENSITIVITY_HEADERS = ["Exit Value", "GP Carry", "GP Carry %", "LP Return", "LP Multiple", "Total Multiple"]
BREAK_EVEN_HEADERS = ["Tier ID", "Tier", "Break-even Exit Value"]


class WaterfallWorkbookRenderer:
    """Render a WaterfallWorkbookCFG to an .xlsx workbook."""

    def __init__(self, config: WaterfallWorkbookCFG):
        self.config = config

        self.blue_font = Font(color="0000FF")  # Blue for input values
        self.black_font = Font(color="000000")  # Black for calculated values
        self.bold_font = Font(bold=True)
        self.title_font = Font(bold=True, size=14)

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")

        self.section_header_font = Font(italic=True, bold=True)
        self.section_header_fill = PatternFill(start_color="E7E6E6", end_color="E7E6E6", fill_type="solid")

        self.warning_font = Font(color="C00000")

        self.top_border = Border(top=Side(style='medium'))
        self.center_align = Alignment(horizontal='center', vertical='center', wrap_text=True)

        self._context: Optional[BlockContext] = None

    def render(self, output_path: str) -> str:
        wb = self.build_workbook()
        wb.save(output_path)
        logger.info("wrote waterfall workbook for scenario %s to %s", self.config.scenario.id, output_path)
        return output_path

    def build_workbook(self) -> Workbook:
        context = self.compute()

        wb = Workbook()
        wb.remove(wb.active)

        self._render_summary_sheet(wb, context)
        self._render_tiers_sheet(wb, context)
        if self.config.include_investor_classes:
            self._render_classes_sheet(wb, context)
        if self.config.sensitivity is not None:
            self._render_sensitivity_sheet(wb, context)
            if self.config.include_break_even:
                self._render_break_even_sheet(wb, context)

        return wb

    def compute(self) -> BlockContext:
        """Run the blocks for this workbook once and cache the context."""
        if self._context is not None:
            return self._context

        context = BlockContext()
        context.set("waterfall_scenario", self.config.scenario)
        blocks = [WaterfallBlock(), ReturnsBlock()]
        if self.config.sensitivity is not None:
            context.set("sensitivity_cfg", self.config.sensitivity)
            blocks.append(SensitivityBlock())

        self._context = BlockExecutor(blocks).execute(context)
        return self._context

    # ------------------------------------------------------------------ #
    # Sheets
    # ------------------------------------------------------------------ #

    def _render_summary_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet("Summary")
        scenario = self.config.scenario
        result: WaterfallDistributionResult = context.get("waterfall_result")

        sheet.cell(row=1, column=1, value=self.config.title or scenario.name).font = self.title_font

        row = 3
        row = self._section(sheet, row, "Inputs")
        row = self._label_value(sheet, row, "Scenario", scenario.id, self.blue_font)
        row = self._label_value(sheet, row, "Model", result.model, self.blue_font)
        row = self._label_value(sheet, row, "Exit Value", float(scenario.exit_value), self.blue_font, MONEY_FORMAT)
        invested_row = row
        row = self._label_value(sheet, row, "Total Invested", float(result.total_invested), self.blue_font, MONEY_FORMAT)
        row = self._label_value(
            sheet, row, "Management Fees", float(scenario.management_fees), self.blue_font, MONEY_FORMAT
        )

        row += 1
        row = self._section(sheet, row, "Results")
        row = self._label_value(sheet, row, "Total GP Carry", float(result.total_gp_carry), fmt=MONEY_FORMAT)
        lp_row = row
        row = self._label_value(sheet, row, "Total LP Return", float(result.total_lp_return), fmt=MONEY_FORMAT)
        row = self._label_value(
            sheet, row, "GP Carry %", float(result.gp_carry_percentage) / 100, fmt=PERCENT_FORMAT
        )
        row = self._label_value(
            sheet, row, "GP Carry % of Profit",
            float(result.gp_carry_percentage_of_profit) / 100, fmt=PERCENT_FORMAT,
        )
        # Same denominator floor as the engine's lp_multiple
        row = self._label_value(
            sheet, row, "LP Multiple", f'=B{lp_row}/MAX(B{invested_row},{EPSILON})', fmt=MULTIPLE_FORMAT
        )
        row = self._label_value(sheet, row, "Total Multiple", float(result.total_multiple), fmt=MULTIPLE_FORMAT)
        row = self._label_value(
            sheet, row, "Undistributed Proceeds", float(result.undistributed_proceeds), fmt=MONEY_FORMAT
        )
        row = self._label_value(
            sheet, row, "Unallocated Amount", float(result.unallocated_amount), fmt=MONEY_FORMAT
        )

        if result.clawback is not None or result.lookback is not None:
            row += 1
            row = self._section(sheet, row, "Provisions")
        if result.clawback is not None:
            row = self._label_value(sheet, row, "Clawback Status", result.clawback.status)
            row = self._label_value(sheet, row, "Clawback Due", float(result.clawback.clawback_due), fmt=MONEY_FORMAT)
            row = self._label_value(
                sheet, row, "Net Carry After Clawback",
                float(result.clawback.net_carry_after_clawback), fmt=MONEY_FORMAT,
            )
        if result.lookback is not None:
            row = self._label_value(sheet, row, "Lookback Status", result.lookback.status)
            row = self._label_value(
                sheet, row, "Carry At Risk", float(result.lookback.carry_at_risk), fmt=MONEY_FORMAT
            )

        if result.allocation_warnings:
            row += 1
            row = self._section(sheet, row, "Warnings")
            for warning in result.allocation_warnings:
                cell = sheet.cell(
                    row=row, column=1,
                    value=f"{warning.tier_name}: {float(warning.amount):,.0f} unallocated ({warning.reason})",
                )
                cell.font = self.warning_font
                row += 1

        sheet.column_dimensions["A"].width = 28
        sheet.column_dimensions["B"].width = 18

    def _render_tiers_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet("Tiers")
        tiers_df: pd.DataFrame = context.get("waterfall_tiers")

        self._header_row(sheet, TIER_HEADERS)

        first_row = 2
        row = first_row
        for record in tiers_df.to_dict("records"):
            sheet.cell(row=row, column=1, value=int(record["order"]))
            sheet.cell(row=row, column=2, value=record["tier_name"])
            sheet.cell(row=row, column=3, value=record["tier_type"])
            self._money(sheet, row, 4, record["gp_share"])
            self._money(sheet, row, 5, record["lp_share"])
            self._money(sheet, row, 6, f"=D{row}+E{row}")
            self._money(sheet, row, 7, record["cumulative_remaining_after"])
            row += 1

        last_row = row - 1
        total_label = sheet.cell(row=row, column=2, value="Total")
        total_label.font = self.bold_font
        for col in (4, 5, 6):
            letter = get_column_letter(col)
            value = f"=SUM({letter}{first_row}:{letter}{last_row})" if last_row >= first_row else 0
            cell = self._money(sheet, row, col, value)
            cell.font = self.bold_font
            cell.border = self.top_border

        sheet.freeze_panes = "B2"
        sheet.column_dimensions["B"].width = 24
        for col in range(4, 8):
            sheet.column_dimensions[get_column_letter(col)].width = 16

    def _render_classes_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet("Investor Classes")
        returns_df: pd.DataFrame = context.get("returns_by_class")
        matrix: pd.DataFrame = context.get("waterfall_by_class")
        result: WaterfallDistributionResult = context.get("waterfall_result")

        tier_ids = list(result.tier_results.keys())
        tier_names = [result.tier_results[tier_id].tier_name for tier_id in tier_ids]
        self._header_row(sheet, CLASS_HEADERS + tier_names)

        row = 2
        for record in returns_df.to_dict("records"):
            sheet.cell(row=row, column=1, value=record["investor_class_name"])
            sheet.cell(row=row, column=2, value=record["type"])
            self._money(sheet, row, 3, record["invested"], self.blue_font)
            self._money(sheet, row, 4, record["returned"])
            self._money(sheet, row, 5, f"=D{row}-C{row}")
            moic = sheet.cell(row=row, column=6, value=f'=IFERROR(D{row}/C{row},"")')
            moic.number_format = MULTIPLE_FORMAT
            self._money(sheet, row, 7, record["carry"])

            class_id = record["investor_class_id"]
            for offset, tier_id in enumerate(tier_ids):
                amount = float(matrix.at[class_id, tier_id]) if class_id in matrix.index else 0.0
                self._money(sheet, row, len(CLASS_HEADERS) + 1 + offset, amount)
            row += 1

        sheet.freeze_panes = "B2"
        sheet.column_dimensions["A"].width = 24

    def _render_sensitivity_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet("Sensitivity")
        curve_df: pd.DataFrame = context.get("sensitivity_curve")

        self._header_row(sheet, SENSITIVITY_HEADERS)

        row = 2
        for record in curve_df.to_dict("records"):
            self._money(sheet, row, 1, record["exit_value"], self.blue_font)
            self._money(sheet, row, 2, record["gp_carry"])
            pct = sheet.cell(row=row, column=3, value=record["gp_carry_percentage"] / 100)
            pct.number_format = PERCENT_FORMAT
            self._money(sheet, row, 4, record["lp_return"])
            for col, key in ((5, "lp_multiple"), (6, "total_multiple")):
                cell = sheet.cell(row=row, column=col, value=record[key])
                cell.number_format = MULTIPLE_FORMAT
            row += 1

        sheet.freeze_panes = "A2"
        for col in range(1, len(SENSITIVITY_HEADERS) + 1):
            sheet.column_dimensions[get_column_letter(col)].width = 16

    def _render_break_even_sheet(self, wb: Workbook, context: BlockContext) -> None:
        sheet = wb.create_sheet("Break-even")
        break_even_df: pd.DataFrame = context.get("break_even_points")

        self._header_row(sheet, BREAK_EVEN_HEADERS)

        row = 2
        for record in break_even_df.to_dict("records"):
            sheet.cell(row=row, column=1, value=record["tier_id"])
            sheet.cell(row=row, column=2, value=record["tier_name"])
            self._money(sheet, row, 3, record["exit_value"])
            row += 1

        if row == 2:
            sheet.cell(row=row, column=1, value="No tier activates within the sensitivity range")

        sheet.column_dimensions["B"].width = 24
        sheet.column_dimensions["C"].width = 20

    # ------------------------------------------------------------------ #
    # Cell helpers
    # ------------------------------------------------------------------ #

    def _header_row(self, sheet: Worksheet, headers: List[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = sheet.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align

    def _section(self, sheet: Worksheet, row: int, title: str) -> int:
        for col in (1, 2):
            sheet.cell(row=row, column=col).fill = self.section_header_fill
        sheet.cell(row=row, column=1, value=title).font = self.section_header_font
        return row + 1

    def _label_value(
        self,
        sheet: Worksheet,
        row: int,
        label: str,
        value,
        font: Optional[Font] = None,
        fmt: Optional[str] = None,
    ) -> int:
        sheet.cell(row=row, column=1, value=label)
        cell = sheet.cell(row=row, column=2, value=value)
        cell.font = font or self.black_font
        if fmt:
            cell.number_format = fmt
        return row + 1

    def _money(self, sheet: Worksheet, row: int, col: int, value, font: Optional[Font] = None):
        cell = sheet.cell(row=row, column=col, value=value)
        cell.font = font or self.black_font
        cell.number_format = MONEY_FORMAT
        return cell


def summary_values(sheet: Worksheet) -> Dict[str, object]:
    """Label -> value map of a rendered Summary sheet (column A -> column B)."""
    values: Dict[str, object] = {}
    for label, value in sheet.iter_rows(min_row=1, max_col=2, values_only=True):
        if isinstance(label, str):
            values[label] = value
    return values
