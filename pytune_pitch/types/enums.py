from enum import Enum


class TrackerState(Enum):
    EMPTY = 0       # historique vide (démarrage, rejet, reset)
    FILLING = 1     # 1 .. history_size-1 lectures valides
    STABLE = 2      # historique plein et cohérent → fréquence stabilisée
    UNSTABLE = 3    # historique plein mais lectures trop dispersées
