# src/hahalab/charts.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

# Hangul-Beschriftungen: erste vorhandene Schrift gewinnt, sonst DejaVu
plt.rcParams["font.sans-serif"] = ["Malgun Gothic", "AppleGothic", "NanumGothic", "Noto Sans CJK KR", "DejaVu Sans"]
plt.rcParams["axes.unicode_minus"] = False

# Farben je Status (wie im Kalender)
STATUS_COLORS = {
    'completed': '#BDBDBD',
    'noshow': '#FFADAD',
    'rescheduled': '#FFD97D',
    'pending': '#A0C4FF',
}


def create_pie_chart(values: list[int], labels: list[str], filename: str, colors: list[str] = None, subtitle: str = None):
    """
    Erstellt ein Tortendiagramm und speichert es als PNG.
    :param values: Liste der Werte (z.B. [durchgeführt, nicht erschienen]).
    :param labels: Zugehörige Labels.
    :param filename: Pfad zur Ausgabedatei.
    :param colors: (Optional) Liste von Farben für die Segmente.
    :param subtitle: (Optional) Text unter dem Diagramm.
    """
    fig, ax = plt.subplots()
    # Nullwerte weglassen, sonst überlappen die Beschriftungen
    shown = [(v, l, c) for v, l, c in zip(values, labels, colors or [None] * len(values)) if v]
    if not shown:
        ax.text(0.5, 0.5, "No data", ha="center", va="center", fontsize=14)
        ax.axis("off")
    else:
        vals, labs, cols = zip(*shown)
        ax.pie(vals, labels=labs, autopct="%1.1f%%", colors=list(cols) if colors else None)
        ax.axis("equal")
    if subtitle:
        fig.text(0.5, 0.02, subtitle, ha="center", va="bottom", fontsize=16, fontweight='bold')
    fig.savefig(filename, bbox_inches="tight")
    plt.close(fig)
