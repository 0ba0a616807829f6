"""User-facing strings of the viewer page, per language."""

MESSAGES: dict[str, dict[str, str]] = {
    "fr": {
        "page_title": "Visualiseur Excel",
        "page_description": "Téléchargez et visualisez vos fichiers Excel",
        "heading": "📊 Visualiseur de Fichiers Excel",
        "subtitle": (
            "Téléchargez un fichier Excel (.xlsx, .xls, .csv, .ods) "
            "pour le visualiser"
        ),
        "drop_here": "Glissez-déposez votre fichier ici",
        "or": "ou",
        "browse": "Parcourir les fichiers",
        "new_file": "Nouveau fichier",
        "loading": "Chargement de {file_name}…",
        "unsupported_format": (
            "Format non supporté. Utilisez .xlsx, .xls, .csv ou .ods"
        ),
        "file_too_large": "Fichier trop volumineux (maximum {max_mb} Mo)",
        "read_error": "Erreur lors de la lecture du fichier: {message}",
        "column_placeholder": "Colonne {index}",
        "footer": "{rows} ligne(s) • {columns} colonne(s)",
    },
    "en": {
        "page_title": "Excel Viewer",
        "page_description": "Upload and view your Excel files",
        "heading": "📊 Excel File Viewer",
        "subtitle": "Upload an Excel file (.xlsx, .xls, .csv, .ods) to view it",
        "drop_here": "Drag and drop your file here",
        "or": "or",
        "browse": "Browse files",
        "new_file": "New file",
        "loading": "Loading {file_name}…",
        "unsupported_format": "Unsupported format. Use .xlsx, .xls, .csv or .ods",
        "file_too_large": "File too large (maximum {max_mb} MB)",
        "read_error": "Error while reading the file: {message}",
        "column_placeholder": "Column {index}",
        "footer": "{rows} row(s) • {columns} column(s)",
    },
}


def message(key: str, lang: str = "fr", **params: object) -> str:
    """Look up a UI string and fill in its placeholders.

    Unknown languages fall back to French.
    """
    catalogue = MESSAGES.get(lang, MESSAGES["fr"])
    template = catalogue[key]
    return template.format(**params) if params else template


def page_strings(lang: str = "fr") -> dict[str, str]:
    """All strings for one language, for the page template."""
    return dict(MESSAGES.get(lang, MESSAGES["fr"]))
