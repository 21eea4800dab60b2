import unittest
from unittest.mock import Mock, patch

import requests

from torbox_search.core.errors import ProviderUnavailableError
from torbox_search.core.settings import Settings
from torbox_search.sources.x1337 import X1337Source

MAGNET = "magnet:?xt=urn:btih:" + "E" * 40 + "&dn=Ubuntu"

LISTING = b"""
<table class="table-list"><tbody>
<tr>
  <td class="coll-1 name"><a href="/sub/1/0/" class="icon"></a><a href="/torrent/111/Ubuntu-22-04/">Ubuntu 22.04</a></td>
  <td class="coll-2 seeds">150</td>
  <td class="coll-3 leeches">12</td>
  <td class="coll-date">Mar. 5th '21</td>
  <td class="coll-4 size mob-user">3.4 GB<span class="seeds">150</span></td>
</tr>
<tr>
  <td class="coll-1 name"><a href="/sub/1/0/" class="icon"></a><a href="/torrent/222/Ubuntu-Server/">Ubuntu Server</a></td>
  <td class="coll-2 seeds">9</td>
  <td class="coll-3 leeches">1</td>
  <td class="coll-date">3:43pm</td>
  <td class="coll-4 size mob-user">1.1 GB<span class="seeds">9</span></td>
</tr>
</tbody></table>
"""

DETAIL = ('<html><body><a href="%s">Magnet Download</a></body></html>' % MAGNET).encode()


def _response(content=b"", status_code=200, text=""):
    response = Mock(status_code=status_code, content=content, text=text)
    response.raise_for_status = Mock()
    return response


class TestX1337Source(unittest.TestCase):
    def setUp(self):
        self.source = X1337Source(Settings(environ={}))

    def test_search_path(self):
        self.assertEqual(X1337Source.search_path("ubuntu", "Movies"), "/category-search/ubuntu/Movies/1/")
        self.assertEqual(X1337Source.search_path("ubuntu", "Apps"), "/category-search/ubuntu/Apps/1/")
        self.assertEqual(X1337Source.search_path("ubuntu", "All"), "/search/ubuntu/1/")

    def test_listing_and_detail_pages(self):
        def fake_get(url, timeout=None):
            if "/torrent/111/" in url:
                return _response(DETAIL)
            if "/torrent/222/" in url:
                raise requests.ConnectionError("detail down")
            return _response(LISTING)

        with patch.object(self.source.session, "get", side_effect=fake_get):
            hits = self.source.search("ubuntu", "All", 50)

        self.assertEqual([hit.title for hit in hits], ["Ubuntu 22.04", "Ubuntu Server"])
        first = hits[0]
        self.assertEqual(first.seeds, "150")
        self.assertEqual(first.peers, "12")
        self.assertEqual(first.size, "3.4 GB")
        self.assertEqual(first.time, "Mar. 5th '21")
        self.assertEqual(first.magnet, MAGNET)
        self.assertEqual(first.desc, "https://1337x.to/torrent/111/Ubuntu-22-04/")
        self.assertEqual(first.provider, "1337x")
        # A failed detail page leaves the hit without a magnet.
        self.assertIsNone(hits[1].magnet)

    def test_detail_fetches_capped_by_limit(self):
        with patch.object(self.source.session, "get", side_effect=[_response(LISTING), _response(DETAIL)]) as get:
            hits = self.source.search("ubuntu", "All", 1)
        self.assertEqual(len(hits), 1)
        self.assertEqual(get.call_count, 2)

    def test_cloudflare_on_every_mirror(self):
        challenge = _response(status_code=403, text="<title>Just a moment...</title>")
        with patch.object(self.source.session, "get", return_value=challenge):
            with self.assertRaises(ProviderUnavailableError) as ctx:
                self.source.search("ubuntu")
        self.assertEqual(str(ctx.exception), "Blocked by Cloudflare challenge on all 1337x mirrors.")


if __name__ == "__main__":
    unittest.main()
