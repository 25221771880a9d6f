"""
tabrunner exceptions
"""


class TabrunnerError(Exception):
    """Base exception for tabrunner"""
    pass


class CompilationError(TabrunnerError):
    """Plan could not be compiled into executable steps"""
    pass


class EmptyPlanError(CompilationError):
    """Compilation produced no executable steps"""
    pass


class SessionActiveError(TabrunnerError):
    """A plan is already executing for this runner"""
    pass


class BrowserError(TabrunnerError):
    """Browser-level failure (tab handling, in-page script)"""
    pass


class TabCreationError(BrowserError):
    """No tab could be created for navigation"""
    pass


class ElementNotFoundError(BrowserError):
    """Selector did not match any element on the active tab"""
    pass


class ExtractionError(TabrunnerError):
    """Error during data extraction"""
    pass


class OutputError(TabrunnerError):
    """Error while building or delivering output"""
    pass


class NoDataError(OutputError):
    """Output was requested but nothing has been collected"""
    pass


class SpreadsheetError(OutputError):
    """Spreadsheet collaborator failed"""
    pass


class DownloadError(OutputError):
    """File delivery collaborator failed"""
    pass
