from unittest.mock import MagicMock, patch

import pytest
from selenium.common.exceptions import TimeoutException, WebDriverException

from accesscheck.features.accessibility.services.browser import selenium_driver
from accesscheck.features.accessibility.services.browser.driver import (
    DriverNetworkError,
    DriverTimeoutError,
    LaunchOptions,
)
from accesscheck.features.accessibility.services.browser.selenium_driver import (
    SeleniumBrowser,
    SeleniumDriver,
    SeleniumPage,
    network_settled,
)


class TestNetworkSettled:
    def test_waits_for_document_ready(self):
        driver = MagicMock()
        driver.execute_script.side_effect = ["loading", 3]

        assert network_settled(0)(driver) is False

    def test_settles_when_resource_count_is_stable(self):
        driver = MagicMock()
        driver.execute_script.side_effect = ["complete", 3, "complete", 3]
        condition = network_settled(0)

        assert condition(driver) is False  # first sample only records the count
        assert condition(driver) is True

    def test_burst_of_requests_restarts_the_quiet_period(self):
        driver = MagicMock()
        driver.execute_script.side_effect = ["complete", 3, "complete", 6]
        condition = network_settled(0)

        condition(driver)
        assert condition(driver) is False

    @staticmethod
    def _sample_every_100ms(condition, driver, samples):
        ticks = iter([i * 0.1 for i in range(samples)])
        with patch.object(selenium_driver.time, "monotonic", side_effect=lambda: next(ticks)):
            return [condition(driver) for _ in range(samples)]

    def test_steady_background_polling_still_settles(self):
        driver = MagicMock()
        counts = iter(range(40, 100))
        driver.execute_script.side_effect = lambda script: "complete" if "readyState" in script else next(counts)

        results = self._sample_every_100ms(network_settled(500), driver, 15)

        assert True in results
        assert results.index(True) <= 6

    def test_continuous_bursts_never_settle(self):
        driver = MagicMock()
        counts = iter(range(40, 400, 5))
        driver.execute_script.side_effect = lambda script: "complete" if "readyState" in script else next(counts)

        assert True not in self._sample_every_100ms(network_settled(500), driver, 15)

    def test_resource_count_is_not_capped_by_the_timing_buffer(self):
        driver = MagicMock()
        driver.execute_script.side_effect = ["complete", 250]

        network_settled(500)(driver)

        count_script = driver.execute_script.call_args_list[1].args[0]
        assert "PerformanceObserver" in count_script
        assert "getEntriesByType('resource').length" in count_script


class TestSeleniumPage:
    @pytest.fixture
    def mock_driver(self):
        return MagicMock()

    def test_goto_maps_page_load_timeout(self, mock_driver):
        mock_driver.get.side_effect = TimeoutException("timed out")
        page = SeleniumPage(mock_driver, "tab", "root")

        with pytest.raises(DriverTimeoutError):
            page._goto("https://example.com", 30000, 500)

        mock_driver.set_page_load_timeout.assert_called_once_with(30.0)

    def test_goto_maps_net_errors(self, mock_driver):
        mock_driver.get.side_effect = WebDriverException("unknown error: net::ERR_NAME_NOT_RESOLVED")
        page = SeleniumPage(mock_driver, "tab", "root")

        with pytest.raises(DriverNetworkError):
            page._goto("https://nope.invalid", 30000, 500)

    def test_goto_reraises_other_webdriver_errors(self, mock_driver):
        mock_driver.get.side_effect = WebDriverException("chrome not reachable")
        page = SeleniumPage(mock_driver, "tab", "root")

        with pytest.raises(WebDriverException):
            page._goto("https://example.com", 30000, 500)

    def test_goto_times_out_if_network_never_settles(self, mock_driver):
        page = SeleniumPage(mock_driver, "tab", "root")

        with patch.object(selenium_driver, "WebDriverWait") as wait:
            wait.return_value.until.side_effect = TimeoutException()
            with pytest.raises(DriverTimeoutError):
                page._goto("https://example.com", 30000, 500)

    def test_close_returns_to_parent_tab(self, mock_driver):
        mock_driver.window_handles = ["root", "tab"]
        page = SeleniumPage(mock_driver, "tab", "root")

        page._close()

        mock_driver.close.assert_called_once()
        mock_driver.switch_to.window.assert_called_with("root")

    @pytest.mark.asyncio
    async def test_user_agent_goes_through_cdp(self, mock_driver):
        page = SeleniumPage(mock_driver, "tab", "root")

        await page.set_user_agent("UA/1.0")

        mock_driver.execute_cdp_cmd.assert_called_once_with(
            "Network.setUserAgentOverride", {"userAgent": "UA/1.0"}
        )


class TestSeleniumBrowser:
    def test_new_page_opens_a_tab(self):
        driver = MagicMock()
        driver.current_window_handle = "root"
        browser = SeleniumBrowser(driver)

        page = browser._new_page()

        driver.switch_to.new_window.assert_called_once_with("tab")
        assert page.parent_handle == "root"

    def test_close_quits_and_removes_profile(self, tmp_path):
        driver = MagicMock()
        profile = tmp_path / "profile"
        profile.mkdir()

        SeleniumBrowser(driver, str(profile))._close()

        driver.quit.assert_called_once()
        assert not profile.exists()


class TestSeleniumDriver:
    def test_build_options(self):
        options = LaunchOptions(args=("--disable-gpu", "--no-sandbox"), executable_path="/usr/bin/chromium")

        chrome_options = SeleniumDriver.build_options(options, "/tmp/profile-x")

        assert "--headless=new" in chrome_options.arguments
        assert "--disable-gpu" in chrome_options.arguments
        assert "--user-data-dir=/tmp/profile-x" in chrome_options.arguments
        assert chrome_options.binary_location == "/usr/bin/chromium"

    def test_build_service_prefers_explicit_driver_path(self):
        with patch.object(selenium_driver, "Service") as service, \
                patch.object(selenium_driver, "ChromeDriverManager") as manager:
            SeleniumDriver.build_service(LaunchOptions(driver_path="/opt/chromedriver", use_webdriver_manager=True))

        service.assert_called_once_with(executable_path="/opt/chromedriver")
        manager.assert_not_called()

    def test_build_service_with_webdriver_manager(self):
        with patch.object(selenium_driver, "Service") as service, \
                patch.object(selenium_driver, "ChromeDriverManager") as manager:
            manager.return_value.install.return_value = "/cache/chromedriver"
            SeleniumDriver.build_service(LaunchOptions(use_webdriver_manager=True))

        service.assert_called_once_with("/cache/chromedriver")

    def test_launch_cleans_profile_when_chrome_fails(self):
        with patch.object(selenium_driver.webdriver, "Chrome", side_effect=WebDriverException("no chrome")), \
                patch.object(selenium_driver, "Service"), \
                patch.object(selenium_driver.tempfile, "mkdtemp", return_value="/tmp/chrome-profile-test"), \
                patch.object(selenium_driver.shutil, "rmtree") as rmtree:
            with pytest.raises(WebDriverException):
                SeleniumDriver()._launch(LaunchOptions())

        rmtree.assert_called_once_with("/tmp/chrome-profile-test", ignore_errors=True)
