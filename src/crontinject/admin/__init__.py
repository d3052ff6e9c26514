"""HTTP adapters for mounting inject control into web frameworks.

The adapters are optional and have NO dependencies in the core package:

    pip install crontinject[fastapi]

Example (FastAPI):
    from fastapi import FastAPI
    from crontinject.admin.fastapi import create_router

    app = FastAPI()
    app.include_router(create_router(control), prefix="/admin")
"""
