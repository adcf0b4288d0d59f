import pytest

SITE = "https://www.racetothewh.com/allpolls"


def poll_card(pollster="Emerson College", race="Pennsylvania Senate", dates="Oct 3-5, 2024",
              sample="812 LV", results=(("McCormick", 47), ("Casey", 45)),
              source="https://emerson.edu/poll-1", extra_links=""):
    items = "".join(f"<li>{name} {pct}%</li>" for name, pct in results)
    return f"""
    <div class="c-9x">
      <div class="c-2f">
        <p>{pollster}</p>
        <p>{race}</p>
        <p>{dates}</p>
        <p>{sample}</p>
        <ul>{items}</ul>
        <a href="/polls/detail">Details</a>
        <a href="{source}">Source</a>
        {extra_links}
      </div>
    </div>
    """


def page(body, chrome=True):
    top = """
    <header><a href="https://www.racetothewh.com/">Home</a>
      <div>Poll tracker: Senate 47% Governor 40%</div></header>
    <nav><a href="https://www.racetothewh.com/senate">Senate polls 50%</a></nav>
    """ if chrome else ""
    bottom = """
    <footer><div>Latest poll survey: Smith 51% Jones 49%
      <a href="https://example.org/footer-poll">footer</a></div></footer>
    """ if chrome else ""
    return f"<html><head><title>All Polls</title><script>var x = 'Poll 99%';</script></head><body>{top}<main>{body}</main>{bottom}</body></html>"


@pytest.fixture
def listing_html():
    cards = [
        poll_card(),
        poll_card(pollster="Quinnipiac University", race="Arizona Governor", dates="Sep 28-Oct 1",
                  sample="n=1200", results=(("Lake", 44), ("Hobbs", 46)), source="https://poll.qu.edu/az"),
        poll_card(pollster="Pollster: Marist", race="Generic Ballot", dates="10/01/24-10/03/24",
                  sample="1200 RV", results=(("Democrats", 48), ("Republicans", 46)),
                  source="https://maristpoll.marist.edu/gb",
                  extra_links='<a href="https://twitter.com/maristpoll">tweet</a>'),
        poll_card(pollster="Gallup", race="Biden Approval", dates="Aug 1-20, 2024",
                  sample="1015 A", results=(("Approve", 41), ("Disapprove", 55)), source="https://news.gallup.com/a"),
        poll_card(pollster="AtlasIntel", race="PA-07 House", dates="Sep 12",
                  sample="600 LV", results=(("Wild", 50), ("Mackenzie", 47)), source="https://atlasintel.org/pa07"),
        poll_card(pollster="YouGov", race="Republican Primary", dates="Jan 5-8, 2024",
                  sample="900 LV", results=(("Trump", 61), ("Haley", 19), ("DeSantis", 12)),
                  source="https://today.yougov.com/gop"),
    ]
    return page("".join(cards))
