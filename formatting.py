from typing import List, Optional, Sequence

from models.bet import BettingSlipAnalysis, Selection

DISCORD_MESSAGE_LIMIT = 2000
LOW_CONFIDENCE = 0.75

RESULT_MARKERS = {
    "win": ("✅", "WIN"),
    "loss": ("❌", "LOSS"),
    "pending": ("⏳", "PENDING"),
    "error": ("⚠️", "ERROR"),
}


def _money(value: float) -> str:
    return f"£{value:,.2f}"


def _marker(selection: Selection) -> str:
    result = getattr(selection, "result", None)
    if result is None:
        return ""
    if result in RESULT_MARKERS:
        emoji, label = RESULT_MARKERS[result]
    elif getattr(selection, "status", None) == "not_found":
        emoji, label = "🔍", "NO RESULT FOUND"
    else:
        emoji, label = "❓", "UNKNOWN"
    return f"{emoji} **{label}**"


def format_not_a_slip(analysis: Optional[BettingSlipAnalysis] = None) -> str:
    text = "🤔 I couldn't find a betting slip in that image. Try a clearer, uncropped screenshot."
    if analysis is not None and analysis.metadata.line_count:
        text += f"\n(Read {analysis.metadata.line_count} lines of text, but no selections or stake.)"
    return text


def format_slip_summary(analysis: BettingSlipAnalysis, selections: Optional[Sequence[Selection]] = None) -> str:
    """Render an analysis, optionally with resolved selections, as a chat message."""
    selections = list(analysis.selections if selections is None else selections)
    out: List[str] = ["🎯 **Betting Slip Analysis**", ""]

    if analysis.metadata.bookmaker:
        out.append(f"🏷️ **Bookmaker:** {analysis.metadata.bookmaker}")
    if analysis.bet_ref:
        out.append(f"📋 **Bet Reference:** `{analysis.bet_ref}`")
    if analysis.match_date:
        out.append(f"📅 **Match Date:** {analysis.match_date}")
    if analysis.bet_type:
        odds = f" @ {analysis.odds:g}" if analysis.odds else ""
        out.append(f"🎲 **Bet Type:** {analysis.bet_type}{odds}")
    if analysis.stake is not None:
        out.append(f"💰 **Stake:** {_money(analysis.stake)}")
    if analysis.to_return is not None:
        out.append(f"💸 **To Return:** {_money(analysis.to_return)}")
    if analysis.boost is not None:
        out.append(f"🚀 **Boost:** {_money(analysis.boost)}")

    if selections:
        out.append("")
        out.append(f"📊 **Selections ({len(selections)}):**")
        wins = losses = 0
        for i, selection in enumerate(selections, start=1):
            result = getattr(selection, "result", None)
            wins += result == "win"
            losses += result == "loss"
            odds = f" @ {selection.odds:.2f}" if selection.odds else ""
            marker = _marker(selection)
            out.append(f"{i}. {selection.team}{odds}" + (f" {marker}" if marker else ""))

            details = []
            if selection.market != "Unknown":
                details.append(selection.market)
            if selection.opponent:
                details.append(f"vs {selection.opponent}")
            score = getattr(selection, "score", None)
            if score:
                details.append(f"Score: {score}")
            if details:
                out.append("   📈 " + " - ".join(details))

        if min(s.confidence for s in selections) < LOW_CONFIDENCE:
            out.append("")
            out.append("⚠️ Partial read: some markets or fixtures were missing, check them against your slip.")

        if wins or losses:
            summary = f"📈 **Results Summary:** {wins}W - {losses}L"
            if wins == len(selections):
                summary += " 🎉 **WINNING BET!**"
            elif losses:
                summary += " ❌ **LOSING BET**"
            out.append("")
            out.append(summary)
    elif analysis.is_betting_slip:
        out.append("")
        out.append("⚠️ Slip details found, but no selections could be read.")

    if analysis.stake and analysis.to_return:
        profit = analysis.to_return - analysis.stake
        roi = profit / analysis.stake * 100
        out.append(f"💹 **Potential Profit:** {_money(profit)} ({roi:.1f}% ROI)")

    return "\n".join(out)


def split_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> List[str]:
    """Split on line boundaries into chunks that fit one chat message."""
    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks
