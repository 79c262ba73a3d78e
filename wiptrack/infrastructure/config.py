# -*- coding: utf-8 -*-
"""
Default engine configuration. Every key can be overridden from a JSON/YAML file
(see ``config_loader.load_config``).
"""
from wiptrack.domain.stages import CONDENSED_ORDER, CONDENSED_STAGES, EXIT_STEPS, QA_DOCUMENT_STEPS, STAGE_PRIORITY

CONFIG = {
    # Display order of raw stage groups; unknown stages sort last (999).
    "stage_priority": dict(STAGE_PRIORITY),

    # Department level view: raw stage -> condensed category.
    "condensed_stages": dict(CONDENSED_STAGES),
    "condensed_order": list(CONDENSED_ORDER),

    # A batch leaves the WIP flow once one of these steps has an EndDate.
    "exit_steps": sorted(EXIT_STEPS),

    # Entries tagged with this stage group are outside the tracked flow.
    "other_stage": "Other",

    # QA only counts a batch once all four document checks are queued and
    # measures it from the last of them.
    "stage_rules": {
        "QA": {"required_steps": list(QA_DOCUMENT_STEPS), "clock": "latest"},
    },

    # Queue intensity thresholds per stage (batch counts).
    "queue_thresholds": {
        "Terima Bahan": {"min": 3, "med": 6, "max": 10},
        "Filling": {"min": 4, "med": 8, "max": 12},
        "Mixing": {"min": 5, "med": 10, "max": 15},
        "Granulasi": {"min": 6, "med": 12, "max": 18},
        "Cetak": {"min": 5, "med": 10, "max": 15},
        "Coating": {"min": 4, "med": 8, "max": 12},
        "Kemas Primer": {"min": 2, "med": 4, "max": 6},
        "Kemas Sekunder": {"min": 3, "med": 5, "max": 7},
    },
    "default_queue_thresholds": {"min": 5, "med": 10, "max": 15},

    # "working" (weekends + holidays excluded) | "calendar" (plain day count)
    "duration_mode": "working",

    # Holidays known at start-up, ISO dates; a holidays feed replaces them.
    "holidays": [],

    "logging": {
        "level": "INFO",
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    },
}
