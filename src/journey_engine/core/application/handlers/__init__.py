from .instance_handlers import ( # noqa
  AdvanceStageHandler,
  CancelJourneyInstanceHandler,
  GetJourneyInstanceHandler,
  GetSlaReportHandler,
  ListJourneyInstancesHandler,
  PauseJourneyInstanceHandler,
  ReopenStageHandler,
  ResumeJourneyInstanceHandler,
  StartJourneyInstanceHandler,
)
from .template_handlers import ( # noqa
  CreateJourneyTemplateHandler,
  DeleteJourneyTemplateHandler,
  DuplicateJourneyTemplateHandler,
  GetJourneyTemplateHandler,
  ListJourneyTemplatesHandler,
  UpdateJourneyTemplateHandler
)
