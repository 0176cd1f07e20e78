
# catalog/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # AppError + repository errors (RepositoryError, DuplicateError, ...)
# │   ├── request.py                 # decode / binding / validation errors of the form pipeline
# │   ├── integrity_classifier.py    # SQL-level / DB-specific errors
# │   └── mapper.py                  # Map SQL-level / DB-specific errors to app-level errors
