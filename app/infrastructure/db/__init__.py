from .database import Base, make_engine, make_session_factory, create_all_tables, session_scope
from .models import TimeEntryModel, ActivityModel, ProjectModel
