"""
Module de gestion de la configuration
"""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .scores import CATEGORIES, DATA_CATEGORIES

# Tolérance sur les sommes de pondérations (les poids ETSI sont arrondis à 1e-5)
WEIGHT_SUM_TOLERANCE = 1e-6

# Profils livrés avec le paquet
DEFAULT_PROFILE = Path(__file__).parent / "config.yaml"
# Seuils de durée convertis en millisecondes
MILLISECONDS_PROFILE = Path(__file__).parent / "config_ms.yaml"

REQUIRED_THRESHOLD_FIELDS = ("weight", "good", "bad", "higher_is_better")

CATEGORY_METRICS = {
    "voice": ("cssr", "cdr", "cst_avg", "cst_over_15", "cst_p10", "mos_avg", "mos_under_16", "mos_p90"),
    "http": ("success_ratio", "dl_avg", "dl_p10", "dl_p90", "ul_avg", "ul_p10", "ul_p90"),
    "browsing": ("success_ratio", "duration_avg", "duration_over_6"),
    "streaming": ("success_ratio", "mos_avg", "mos_p10", "setup_avg", "setup_over_10"),
    "social": ("success_ratio", "duration_avg", "duration_over_15"),
}


@dataclass(frozen=True)
class ThresholdEntry:
    """
    Seuils de la transformation linéaire d'une métrique

    good est toujours la valeur à score 1, bad la valeur à score 0.
    """

    good: float
    bad: float
    higher_is_better: bool = True


@dataclass(frozen=True)
class MetricSpec:
    name: str
    weight: float
    threshold: ThresholdEntry


@dataclass(frozen=True)
class CategorySpec:
    name: str
    weight: float
    metrics: Tuple[MetricSpec, ...]

    @property
    def total_metric_weight(self) -> float:
        return sum(metric.weight for metric in self.metrics)


class Config:
    """Gestionnaire de configuration pour l'analyseur QoE"""

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialise la configuration

        Args:
            config_path: Chemin vers le fichier de configuration YAML
        """
        if config_path is None:
            config_path = DEFAULT_PROFILE

        self.config_path = Path(config_path)
        self.config = self._load_config()
        self._categories = self._build_categories(self.config["scoring"])

    def _load_config(self) -> dict[str, Any]:
        """Charge la configuration depuis le fichier YAML"""
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Fichier de configuration non trouvé: {self.config_path}\n"
                f"Veuillez fournir un fichier YAML contenant au minimum la section 'scoring'."
            )

        try:
            with open(self.config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(
                f"Erreur de syntaxe YAML dans {self.config_path}: {e}\n"
                f"Vérifiez que le fichier est correctement formaté."
            )

        if config is None:
            raise ValueError(
                f"Le fichier de configuration {self.config_path} est vide.\n"
                f"Veuillez ajouter au minimum la section: scoring."
            )

        if not isinstance(config, dict):
            raise ValueError(f"La configuration {self.config_path} doit être un dictionnaire")

        self._validate_config(config)

        return config

    def _validate_config(self, config: dict[str, Any]) -> None:
        """
        Valide la structure de la configuration

        Args:
            config: Configuration chargée depuis le fichier YAML

        Raises:
            ValueError: Si la configuration est invalide
        """
        if "scoring" not in config or not isinstance(config["scoring"], dict):
            raise ValueError(f"Section 'scoring' manquante ou invalide dans {self.config_path}")

        scoring = config["scoring"]
        for section in ("categories", "data_categories", "overall"):
            if not isinstance(scoring.get(section), dict):
                raise ValueError(f"La section 'scoring.{section}' doit être un dictionnaire")

        categories = scoring["categories"]
        missing = [name for name in CATEGORIES if name not in categories]
        if missing:
            raise ValueError(f"Catégories manquantes dans 'scoring.categories': {', '.join(missing)}")

        for name in CATEGORIES:
            self._validate_category(name, categories[name])

        # Domaine Data : les pondérations servent aussi de poids attendus pour la renormalisation
        data_weights = scoring["data_categories"]
        missing = [name for name in DATA_CATEGORIES if name not in data_weights]
        if missing:
            raise ValueError(f"Catégories manquantes dans 'scoring.data_categories': {', '.join(missing)}")
        for name in DATA_CATEGORIES:
            self._check_number(f"scoring.data_categories.{name}", data_weights[name])
            if not math.isclose(data_weights[name], categories[name]["weight"], abs_tol=WEIGHT_SUM_TOLERANCE):
                raise ValueError(
                    f"La pondération Data de '{name}' ({data_weights[name]}) ne correspond pas "
                    f"au poids de la catégorie ({categories[name]['weight']})"
                )
        self._check_sum("scoring.data_categories", [data_weights[n] for n in DATA_CATEGORIES], 1.0)

        overall = scoring["overall"]
        for name in ("voice", "data"):
            if name not in overall:
                raise ValueError(f"Pondération manquante dans 'scoring.overall': {name}")
            self._check_number(f"scoring.overall.{name}", overall[name])
        self._check_sum("scoring.overall", [overall["voice"], overall["data"]], 1.0)

        session = config.get("session")
        if session is not None:
            if not isinstance(session, dict):
                raise ValueError("La section 'session' doit être un dictionnaire")
            for key in ("max_history", "max_reasons", "max_samples_per_series"):
                value = session.get(key)
                if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 1):
                    raise ValueError(f"'session.{key}' doit être un entier positif ou null, reçu: {value!r}")

    def _validate_category(self, name: str, category: Any) -> None:
        if not isinstance(category, dict) or not isinstance(category.get("metrics"), dict):
            raise ValueError(f"La catégorie '{name}' doit contenir 'weight' et 'metrics'")

        self._check_number(f"scoring.categories.{name}.weight", category.get("weight"))

        metrics = category["metrics"]
        missing = [m for m in CATEGORY_METRICS[name] if m not in metrics]
        if missing:
            raise ValueError(f"Métriques manquantes pour '{name}': {', '.join(missing)}")

        for metric_name, entry in metrics.items():
            path = f"scoring.categories.{name}.metrics.{metric_name}"
            if not isinstance(entry, dict):
                raise ValueError(f"'{path}' doit être un dictionnaire")
            missing_fields = [f for f in REQUIRED_THRESHOLD_FIELDS if f not in entry]
            if missing_fields:
                raise ValueError(f"Champs manquants dans '{path}': {', '.join(missing_fields)}")

            self._check_number(f"{path}.weight", entry["weight"])
            for bound in ("good", "bad"):
                if isinstance(entry[bound], bool) or not isinstance(entry[bound], (int, float)):
                    raise ValueError(f"'{path}.{bound}' doit être un nombre, reçu: {entry[bound]!r}")
            if not isinstance(entry["higher_is_better"], bool):
                raise ValueError(f"'{path}.higher_is_better' doit être un booléen")
            if entry["good"] == entry["bad"]:
                raise ValueError(
                    f"Seuils identiques pour '{path}': good == bad == {entry['good']}\n"
                    f"La transformation linéaire nécessite deux bornes distinctes."
                )

        self._check_sum(
            f"scoring.categories.{name}.metrics",
            [entry["weight"] for entry in metrics.values()],
            category["weight"],
        )

    def _check_number(self, path: str, value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(
                f"La valeur '{path}' doit être un nombre (int ou float), " f"reçu: {type(value).__name__} ({value})"
            )
        if value < 0:
            raise ValueError(f"La pondération '{path}' ne peut pas être négative: {value}")

    def _check_sum(self, path: str, weights: list, expected: float) -> None:
        total = sum(weights)
        if not math.isclose(total, expected, abs_tol=WEIGHT_SUM_TOLERANCE):
            raise ValueError(f"La somme des pondérations de '{path}' vaut {total:.6f}, attendu {expected}")

    def _build_categories(self, scoring: dict[str, Any]) -> Dict[str, CategorySpec]:
        categories = {}
        for name in CATEGORIES:
            raw = scoring["categories"][name]
            metrics = tuple(
                MetricSpec(
                    name=metric_name,
                    weight=float(entry["weight"]),
                    threshold=ThresholdEntry(
                        good=float(entry["good"]),
                        bad=float(entry["bad"]),
                        higher_is_better=entry["higher_is_better"],
                    ),
                )
                for metric_name, entry in raw["metrics"].items()
            )
            categories[name] = CategorySpec(name=name, weight=float(raw["weight"]), metrics=metrics)
        return categories

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Récupère une valeur de configuration par son chemin

        Args:
            key_path: Chemin de la clé (ex: "session.max_history")
            default: Valeur par défaut si la clé n'existe pas

        Returns:
            Valeur de la configuration
        """
        keys = key_path.split(".")
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def category(self, name: str) -> CategorySpec:
        """Retourne la spécification d'une catégorie (voice, http, ...)"""
        return self._categories[name]

    @property
    def categories(self) -> Dict[str, CategorySpec]:
        """Retourne toutes les catégories configurées"""
        return dict(self._categories)

    @property
    def data_weights(self) -> dict[str, float]:
        """Retourne les pondérations du domaine Data"""
        return {name: float(self.config["scoring"]["data_categories"][name]) for name in DATA_CATEGORIES}

    @property
    def overall_weights(self) -> dict[str, float]:
        """Retourne les pondérations du score global"""
        overall = self.config["scoring"]["overall"]
        return {"voice": float(overall["voice"]), "data": float(overall["data"])}

    @property
    def session_config(self) -> dict[str, Any]:
        """Retourne la configuration de la session"""
        session = self.config.get("session") or {}
        return {
            "max_history": session.get("max_history") or 100,
            "max_reasons": session.get("max_reasons") or 50,
            "max_samples_per_series": session.get("max_samples_per_series"),
        }

    @property
    def storage_config(self) -> dict[str, Any]:
        """Retourne la configuration du stockage"""
        return self.config.get("storage") or {}


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Crée et retourne une instance de configuration

    Args:
        config_path: Chemin vers le fichier de configuration.
                     Si None, utilise le profil config.yaml livré avec le paquet.

    Returns:
        Instance de Config

    Raises:
        FileNotFoundError: Si le fichier de configuration n'existe pas
        ValueError: Si la configuration est invalide ou mal formatée
    """
    return Config(config_path)
