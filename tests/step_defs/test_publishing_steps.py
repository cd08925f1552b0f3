"""Step definitions for publishing BDD tests."""

import asyncio
from unittest.mock import Mock

from pytest_bdd import given, parsers, scenarios, then, when

from trend_studio.auth import StaticTokenProvider
from trend_studio.controller import StudioController
from trend_studio.exceptions import PublishError
from trend_studio.models import BlogImage, BlogStyle, GeneratedBlog, SeoData
from trend_studio.publisher import convert_blog_to_full_html
from trend_studio.storage import StudioStore

scenarios("../features/publishing.feature")

HEADER = "https://img.example.com/header.png"
MID = "https://img.example.com/mid.png"


# Given steps
@given(parsers.parse("a finished draft with {count:d} H2 sections"))
def finished_draft(context, count):
    sections = "\n\n".join(f"## Section {i}\n\nBody of section {i}." for i in range(1, count + 1))
    context["blog"] = GeneratedBlog(
        title="iPhone 17 review",
        content=f"Intro paragraph.\n\n{sections}",
        style=BlogStyle.NEWS,
        images=[BlogImage(url=HEADER, is_ai_generated=True), BlogImage(url=MID, is_ai_generated=True)],
        seo_data=SeoData(slug="iphone-17-review", schema_markup='{"@type": "Article"}'),
    )


@given("Blogger accepts posts")
def blogger_accepts(context):
    context["blogger"] = Mock()
    context["blogger"].publish.return_value = {"id": "p1", "url": "https://blog.example.com/p1"}


@given(parsers.parse('Blogger rejects posts with "{message}"'))
def blogger_rejects(context, message):
    context["blogger"] = Mock()
    context["blogger"].publish.side_effect = PublishError(message, status_code=404)


@given(parsers.re(r'settings with blog id "(?P<blog_id>[^"]*)" and client id "(?P<client_id>[^"]*)"'))
def saved_settings(context, blog_id, client_id):
    studio = StudioController(
        content=Mock(),
        store=StudioStore(),
        auth=StaticTokenProvider("tok"),
        blogger=context["blogger"],
    )
    studio.save_settings(blog_id, client_id)
    studio.current_blog = context["blog"]
    context["studio"] = studio


# When steps
@when("I convert the draft to HTML")
def convert(context):
    context["html"] = convert_blog_to_full_html(context["blog"])


@when("I publish the draft")
def publish(context):
    context["outcome"] = asyncio.run(context["studio"].publish())


# Then steps
@then("the header image should come first")
def check_header_first(context):
    assert context["html"].index(HEADER) < context["html"].index("Intro paragraph.")


@then("the mid image should follow the first H2")
def check_mid_image(context):
    html = context["html"]
    assert html.index("<h2>Section 1</h2>") < html.index(MID) < html.index("<h2>Section 2</h2>")
    assert html.count(MID) == 1


@then("the schema markup should be hidden at the end")
def check_schema(context):
    assert context["html"].endswith('<div style="display:none !important;">{"@type": "Article"}</div>')


@then("the publish should succeed")
def check_success(context):
    assert context["outcome"].success
    assert context["outcome"].post["id"] == "p1"


@then(parsers.parse('Blogger should receive a post for blog "{blog_id}"'))
def check_blogger_called(context, blog_id):
    context["blogger"].publish.assert_called_once_with(context["blog"], blog_id, "tok")


@then(parsers.parse('the publish should fail with "{message}"'))
def check_failure(context, message):
    assert not context["outcome"].success
    assert context["outcome"].error == message


@then("Blogger should not be called")
def check_blogger_not_called(context):
    context["blogger"].publish.assert_not_called()


@then(parsers.parse('the manual editor link should be "{url}"'))
def check_manual_link(context, url):
    assert context["studio"].manual_editor_url() == url
