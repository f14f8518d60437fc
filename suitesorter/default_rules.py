# Ordered, first match wins. Patterns are matched against the path relative
# to the project root; see classifier.compile_pattern for the syntax.
# {tests} is replaced with the tests folder (--tests-dir) before compiling.
DEFAULT_RULES = [
    # already migrated: stays where it is
    ("{tests}/unit/**", "unit", "{tests}/unit/{subpath}"),
    ("{tests}/integration/**", "integration", "{tests}/integration/{subpath}"),
    ("{tests}/e2e/**", "e2e", "{tests}/e2e/{subpath}"),
    ("{tests}/fixtures/**", "fixture", "{tests}/fixtures/{subpath}"),
    ("{tests}/helpers/**", "helper", "{tests}/helpers/{subpath}"),
    # conftest files are fixtures and are never moved automatically
    ("**/conftest.py", "fixture", "{path}"),
    # SIT suites drive the browser
    ("{tests}/{project}/sit_tests/pages/**", "helper", "{tests}/e2e/{project}/pages/{subpath}"),
    ("{tests}/{project}/sit_tests/page_objects/**", "helper", "{tests}/e2e/{project}/pages/{subpath}"),
    ("{tests}/{project}/sit_tests/**", "e2e", "{tests}/e2e/{project}/ui/{subpath}"),
    # sprint folders become feature folders
    ("{tests}/{project}/tests/[Ss]print[-_]{sprint}_{feature}/**", "integration",
     "{tests}/integration/{project}/{feature|snake}/{subpath}"),
    ("{tests}/{project}/tests/[Ss]print[-_]{sprint}/**", "integration",
     "{tests}/integration/{project}/sprint_{sprint}/{subpath}"),
    ("{tests}/{project}/tests/unit/**", "unit", "{tests}/unit/{project}/{subpath}"),
    # shared artifacts
    ("{tests}/{project}/page_objects/**", "helper", "{tests}/e2e/{project}/pages/{subpath}"),
    ("{tests}/{project}/pages/**", "helper", "{tests}/e2e/{project}/pages/{subpath}"),
    ("{tests}/{project}/fixtures/**", "fixture", "{tests}/fixtures/{project}/{subpath}"),
    ("{tests}/{project}/test_data/**", "fixture", "{tests}/fixtures/{project}/{subpath}"),
    ("{tests}/{project}/data/**", "fixture", "{tests}/fixtures/{project}/{subpath}"),
    ("{tests}/{project}/utils/**", "helper", "{tests}/helpers/{project}/{subpath}"),
    ("{tests}/{project}/helpers/**", "helper", "{tests}/helpers/{project}/{subpath}"),
    ("{tests}/{project}/reports/**", "report", "reports/{project}/{subpath}"),
    ("{tests}/{project}/allure-results/**", "report", "reports/{project}/allure-results/{subpath}"),
    ("{tests}/{project}/screenshots/**", "report", "reports/{project}/screenshots/{subpath}"),
    # anything else under a project's tests folder
    ("{tests}/{project}/tests/**", "integration", "{tests}/integration/{project}/{subpath}"),
]

# Layer folders that get a marker-applying conftest.py when first created.
LAYER_MARKERS = {
    "unit": "unit",
    "integration": "integration",
    "e2e": "e2e",
}
